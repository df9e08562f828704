"""Command-line interface and input validation."""

import argparse
import os
import sys

from curlpad import __version__
from curlpad.runner import DEFAULT_TIMEOUT

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the curlpad CLI."""
    parser = argparse.ArgumentParser(
        prog="curlpad",
        description=(
            "curlpad v{ver} - Execute HTTP request files with curl.\n\n"
            "A request file holds either a JSON object (url, method, "
            "headers, body) or a curl command. Files with several "
            "'## Title' sections hold one curl command per section. The "
            "response is written next to the request file (.req -> .res, "
            "otherwise .response) or printed with --no-save."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  curlpad api/users.req\n"
            "  curlpad api/users.req --section 'Create user' --no-save\n"
            "  curlpad api/all.request --all --timeout 30\n"
        ),
    )

    parser.add_argument(
        "request_file",
        help="Path to the request file (.req or .request).",
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--section",
        default=None,
        help="Execute only the section with this '## Title' (case-insensitive).",
    )
    target.add_argument(
        "--all",
        action="store_true",
        default=False,
        dest="run_all",
        help="Execute every section of the file concurrently.",
    )
    target.add_argument(
        "--list",
        action="store_true",
        default=False,
        dest="list_sections",
        help="List the sections of the file and exit.",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=True,
        dest="save_file",
        help="Write the response file next to the request (default: True).",
    )
    parser.add_argument(
        "--no-save",
        action="store_false",
        dest="save_file",
        help="Print the response instead of writing a response file.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        help="Log level for diagnostics on stderr (default: WARNING).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If the request file is missing or unreadable, or the
            timeout is not positive.
    """
    if not os.path.isfile(args.request_file):
        print(
            f"Error: Request file not found: '{args.request_file}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if not os.access(args.request_file, os.R_OK):
        print(
            f"Error: Request file is not readable: '{args.request_file}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.timeout <= 0:
        print("Error: Timeout must be greater than zero.", file=sys.stderr)
        sys.exit(1)

    if args.section is not None and not args.section.strip():
        print("Error: Section title cannot be empty.", file=sys.stderr)
        sys.exit(1)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    return args
