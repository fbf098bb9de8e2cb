"""Command-line interface: fetch one URL and print the response."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console

from . import __version__
from .client import Client
from .config import ClientConfig, load_environment
from .exceptions import HttpError
from .logging_utils import configure_logging
from .request import Request
from .response import Response
from .uri import Uri


def _timeout(value: str) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError("Timeout must be a positive number of seconds")
    return seconds


def _header(value: str) -> str:
    name, separator, rest = value.partition(":")
    if not separator or not name.strip():
        raise argparse.ArgumentTypeError("Headers must look like 'Name: value'")
    return f"{name.strip()}: {rest.strip()}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttp",
        description="Send one HTTP request and print the response.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("url", help="Absolute http(s) URL to request")
    parser.add_argument("--method", "-X", default="GET", help="HTTP method (default: GET)")
    parser.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        type=_header,
        help="Extra request header, repeatable ('Name: value')",
    )
    parser.add_argument("--data", "-d", help="Request body")
    parser.add_argument("--timeout", type=_timeout, help="Transport timeout in seconds")
    parser.add_argument("--log-json", action="store_true", help="Emit structured JSON logs to the log file")
    parser.add_argument("--log-file", type=Path, help="Write logs to the specified path")

    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="Decode and pretty-print a JSON body")
    output.add_argument("--title", action="store_true", help="Print only the HTML page title")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Reduce logging output")
    return parser


def configure_cli_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    configure_logging(level=level, json_logs=args.log_json, logfile=args.log_file)


def _print_response(console: Console, response: Response, args: argparse.Namespace) -> None:
    if args.title:
        console.print(response.get_page_title(), markup=False, highlight=False)
        return
    for line in response.get_headers():
        console.print(line, markup=False, highlight=False)
    console.print()
    if args.json:
        console.print(json.dumps(response.json_decode(), indent=2), markup=False, highlight=False)
    else:
        console.print(
            bytes(response.get_body()).decode("utf-8", errors="replace"),
            markup=False,
            highlight=False,
        )


def main(argv: Optional[Iterable[str]] = None, *, client: Optional[Client] = None) -> int:
    load_environment()
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_cli_logging(args)
    logger = logging.getLogger("minihttp.cli")
    console = Console(highlight=False, soft_wrap=True)

    options: dict[str, object] = {"method": args.method.upper(), "header": list(args.header)}
    if args.data is not None:
        options["content"] = args.data
    if args.timeout is not None:
        options["timeout"] = args.timeout

    try:
        request = Request(Uri(args.url), options)
        if client is None:
            client = Client(logger, config=ClientConfig.from_env())
        with client:
            response = client.send_request(request)
            _print_response(console, response, args)
    except HttpError as exc:
        logger.error("Request failed: %s", exc)
        return 1

    logger.debug("%s", request)
    status = response.get_status_code()
    return 0 if 100 <= status < 400 else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
