"""curlpad - Main entry point.

Ties together the CLI, section splitting and the execution engine to run
one request file (or some of its sections) and report the responses.
"""

import logging
import sys

from curlpad.cli import parse_cli
from curlpad.engine import (
    ExecutionConfig,
    ExecutionOutcome,
    ExecutionTimings,
    execute_file,
    execute_sections,
    timed_label,
)
from curlpad.errors import CurlpadError, ParseFailure
from curlpad.parser import load_request_file
from curlpad.sections import find_sections

EXIT_OK = 0
EXIT_HTTP_ERROR = 1
EXIT_ERROR = 2


def setup_logging(level: str = "WARNING") -> None:
    """Configure diagnostics logging on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def report_outcome(outcome: ExecutionOutcome, timings: ExecutionTimings) -> int:
    """Print one successful outcome and return its exit code."""
    result = outcome.result
    message = (
        f"[+] HTTP request executed successfully. "
        f"Status: {result.status_code} ({outcome.elapsed}s)"
    )
    if outcome.saved:
        print(message)
        print(f"    Saved  : {timed_label(outcome.identity, timings)}")
    else:
        print(message + " - Preview mode")
        print()
        print(outcome.text)

    if result.status_code == 0 or result.status_code >= 400:
        return EXIT_HTTP_ERROR
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Run the curlpad tool.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = success, 1 = HTTP error status, 2 = error).
    """
    args = parse_cli(argv)
    setup_logging(args.log_level)

    print(f"[*] Loading request file: {args.request_file}")
    try:
        document = load_request_file(args.request_file)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error reading request file: {exc}", file=sys.stderr)
        return EXIT_ERROR

    sections = find_sections(document)

    if args.list_sections:
        if not sections:
            print("    (no sections, the whole file is one request)")
        for section in sections:
            print(
                f"    {section.title} "
                f"(lines {section.start_line + 1}-{section.end_line + 1})"
            )
        return EXIT_OK

    config = ExecutionConfig(timeout=args.timeout, save_file=args.save_file)
    timings = ExecutionTimings()

    if args.run_all and not sections:
        print("[*] No sections found, executing the whole file.")

    # Without --section, a sectioned file runs every section.
    if sections and (args.run_all or args.section is None):
        print(f"[*] Executing {len(sections)} sections...")
        worst = EXIT_OK
        for title, outcome in execute_sections(
            args.request_file, timings, config
        ):
            print(f"\n[*] {title}")
            if isinstance(outcome, ExecutionOutcome):
                code = report_outcome(outcome, timings)
            else:
                print(
                    f"Failed to execute HTTP request: {outcome}",
                    file=sys.stderr,
                )
                code = EXIT_ERROR
            worst = max(worst, code)
        return worst

    label = f"section '{args.section}'" if args.section else "request"
    print(f"[*] Executing {label} (timeout {args.timeout:g}s)...")
    try:
        outcome = execute_file(
            args.request_file, timings, config, section=args.section
        )
    except ParseFailure as exc:
        print(f"Error parsing request: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except CurlpadError as exc:
        print(f"Failed to execute HTTP request: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except UnicodeDecodeError as exc:
        print(f"Error reading request file: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as exc:
        print(f"Error writing response: {exc}", file=sys.stderr)
        return EXIT_ERROR

    return report_outcome(outcome, timings)


if __name__ == "__main__":
    sys.exit(main())
