# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpmon CLI."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urlsplit

from ..config import load_probe_settings
from ..errors import HttpmonError
from ..log import setup_logging
from ..models import SummaryStats
from ..runtime import HttpMon
from ..summary import summarize
from .formatter import format_duration_ms, format_duration_s, format_int, format_percentage
from .records import PING_HEADER, CsvPingWriter, ping_to_record, read_pings
from .table import TableWriter

SUMMARY_HEADER = (
    "URL",
    "AVAILABILITY",
    "AVG RT",
    "MEDIAN RT",
    "P99 RT",
    "LONGEST RT",
    "CERT VALIDITY",
    "WORST MONITOR",
    "MEASUREMENTS",
    "FAILED MEASUREMENTS",
    "DURATION",
)
_SCHEMES = {"http", "https"}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--csv",
        action="store_true",
        help="Write (and read) ';'-delimited records instead of an aligned table",
    )
    common.add_argument("--batch", action="store_true", help="Omit the header row")
    common.add_argument("--log-level", default=None, help="Logging level (default: HTTPMON_LOG_LEVEL or WARNING)")

    parser = argparse.ArgumentParser(prog="httpmon", description="One-shot HTTP(S) endpoint monitoring")
    subparsers = parser.add_subparsers(dest="command", required=True)

    monitor = subparsers.add_parser("monitor", parents=[common], help="Probe endpoints once and print one row per URL")
    monitor.add_argument("urls", nargs="*", metavar="URL", help="http:// or https:// URL to probe")
    monitor.add_argument("-f", "--file", help="Read URLs from FILE, one per line")
    monitor.add_argument("-n", "--name", help="Monitor name recorded with each result (default: hostname)")
    monitor.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )

    summary = subparsers.add_parser("summarize", parents=[common], help="Aggregate monitor records per URL")
    summary.add_argument("-f", "--file", help="Read records from FILE instead of standard input")
    summary.add_argument(
        "-i",
        "--ignore",
        dest="ignore_invalid",
        action="store_true",
        help="Skip records that cannot be parsed",
    )
    summary.add_argument(
        "--ignore-missing-certs",
        action="store_true",
        help="Leave out results without a certificate when computing the shortest validity",
    )
    return parser


def invalid_urls(urls: Sequence[str]) -> list[str]:
    """Return an error message for every URL that is not an absolute http(s) URL."""
    errors: list[str] = []
    for url in urls:
        try:
            parts = urlsplit(url)
        except ValueError as exc:
            errors.append(f"Invalid url '{url}': {exc}")
            continue
        if parts.scheme.lower() not in _SCHEMES or not parts.hostname:
            errors.append(f"Invalid url '{url}'")
    return errors


def read_url_file(path: str) -> list[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def summary_to_row(stats: SummaryStats) -> list[str]:
    return [
        stats.endpoint,
        format_percentage(stats.availability),
        format_duration_ms(stats.avg_response_time),
        format_duration_ms(stats.median_response_time),
        format_duration_ms(stats.p99_response_time),
        format_duration_ms(stats.longest_response_time),
        format_duration_s(stats.shortest_cert_validity),
        stats.worst_monitor,
        format_int(stats.measurements),
        format_int(stats.failed_measurements),
        format_duration_s(stats.monitoring_duration),
    ]


def run_monitor(args: argparse.Namespace) -> int:
    if args.file and args.urls:
        raise HttpmonError("URLs can come from a file or from arguments, not both")
    urls = read_url_file(args.file) if args.file else [url for url in args.urls if url.strip()]
    if not urls:
        raise HttpmonError("no URLs to monitor")

    errors = invalid_urls(urls)
    if errors:
        for message in errors:
            print(message, file=sys.stderr)
        return 1

    settings = load_probe_settings()
    if args.ignore_ssl_errors:
        settings.verify_ssl = False

    writer: CsvPingWriter | TableWriter = CsvPingWriter(sys.stdout) if args.csv else TableWriter(sys.stdout)
    if not args.batch:
        writer.write_row(PING_HEADER)

    mon = HttpMon(args.name, settings=settings)
    mon.probe_all(urls, on_result=lambda ping: writer.write_row(ping_to_record(ping)))

    writer.flush()
    return 0


def run_summarize(args: argparse.Namespace) -> int:
    if not args.csv:
        raise HttpmonError("summarize reads ';'-delimited records; pass --csv")

    if args.file:
        with open(args.file, encoding="utf-8", newline="") as stream:
            pings = read_pings(stream, ignore_invalid=args.ignore_invalid)
    else:
        pings = read_pings(sys.stdin, ignore_invalid=args.ignore_invalid)

    stats = summarize(pings, ignore_missing_certificates=args.ignore_missing_certs)

    table = TableWriter(sys.stdout)
    if not args.batch:
        table.write_row(SUMMARY_HEADER)
    for item in stats:
        table.write_row(summary_to_row(item))
    table.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.command == "monitor":
            return run_monitor(args)
        return run_summarize(args)
    except (HttpmonError, OSError) as exc:
        print(f"httpmon: error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
