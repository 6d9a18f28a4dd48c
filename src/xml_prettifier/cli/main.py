"""Main CLI entry point for the prettify-xml command-line tool.

Provides formatting of files or standard input, a canonical-layout check
suitable for CI, and a token dump for debugging malformed documents.
"""

import argparse
import json
import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xml_prettifier import __version__
from xml_prettifier.api import XMLPrettifier
from xml_prettifier.character import CharacterStreamProcessor
from xml_prettifier.shared.config import (
    ConfigValidationError,
    FormatterConfig,
    PrettifierConfig,
)
from xml_prettifier.shared.errors import PrettifyError
from xml_prettifier.shared.logging import get_logger
from xml_prettifier.tokenization import XMLTokenizer

STDIN_MARKER = "-"
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130  # Standard exit code for SIGINT

logger = get_logger(__name__, None, "cli")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="prettify-xml",
        description="Reformat XML into a canonical, indented one-unit-per-line layout"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Format command
    format_parser = subparsers.add_parser("format", help="Format XML documents")
    format_parser.add_argument(
        "paths",
        nargs="*",
        help="XML files to format, '-' or nothing for standard input"
    )
    _add_indent_argument(format_parser)
    destination = format_parser.add_mutually_exclusive_group()
    destination.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    destination.add_argument(
        "--in-place", "-i",
        action="store_true",
        help="Rewrite each file with its formatted content"
    )

    # Check command
    check_parser = subparsers.add_parser(
        "check", help="Exit non-zero if any file is not already formatted"
    )
    check_parser.add_argument(
        "paths",
        nargs="+",
        help="XML files to check"
    )
    _add_indent_argument(check_parser)

    # Tokens command
    tokens_parser = subparsers.add_parser("tokens", help="Dump the token stream")
    tokens_parser.add_argument(
        "path",
        nargs="?",
        default=STDIN_MARKER,
        help="XML file to tokenize (default: stdin)"
    )
    tokens_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    return parser


def _add_indent_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--indent",
        type=int,
        default=FormatterConfig().indent_width,
        help="Spaces per nesting level (default: %(default)s)"
    )
    parser.add_argument(
        "--tabs",
        action="store_true",
        help="Indent with one tab per nesting level"
    )


def build_config(args: argparse.Namespace) -> PrettifierConfig:
    """Translate command-line options into a PrettifierConfig."""
    if args.tabs:
        formatter = FormatterConfig(indent_width=1, indent_char="\t")
    else:
        formatter = FormatterConfig(indent_width=args.indent)
    return PrettifierConfig(formatter=formatter, enable_metrics=args.verbose)


def read_input(path: str) -> bytes:
    """Read raw bytes from a file path or standard input."""
    if path == STDIN_MARKER:
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def write_output(data: bytes, output: Optional[Path] = None) -> None:
    """Write bytes to ``output`` or standard output."""
    if output is not None:
        output.write_bytes(data)
        return
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def replace_file(path: Path, data: bytes) -> None:
    """Replace the contents of ``path`` with ``data`` atomically.

    The bytes go to a temporary file in the same directory, which is then moved
    over ``path``. On failure the original file is left as it was.
    """
    tmp = tempfile.NamedTemporaryFile(
        mode="wb", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    )
    temp_path = Path(tmp.name)
    try:
        with tmp:
            tmp.write(data)
        shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def report_error(source: str, error: Union[PrettifyError, OSError]) -> None:
    """Print a one-line diagnostic for ``source`` to standard error."""
    if isinstance(error, PrettifyError):
        message = error.describe()
    else:
        message = f"{type(error).__name__}: {error.strerror or error}"
    print(f"{source}: {message}", file=sys.stderr)


def cmd_format(args: argparse.Namespace) -> int:
    """Handle format command."""
    paths: List[str] = args.paths or [STDIN_MARKER]
    if args.output is not None and len(paths) > 1:
        print("--output accepts a single input", file=sys.stderr)
        return EXIT_FAILURE
    if args.in_place and STDIN_MARKER in paths:
        print("--in-place cannot be used with standard input", file=sys.stderr)
        return EXIT_FAILURE

    prettifier = XMLPrettifier(config=build_config(args))
    exit_code = EXIT_OK

    for path in paths:
        source = "<stdin>" if path == STDIN_MARKER else path
        try:
            result = prettifier.prettify(read_input(path))
            data = result.to_bytes()
            if args.in_place:
                if result.changed:
                    replace_file(Path(path), data)
            else:
                write_output(data, args.output)
        except (PrettifyError, OSError) as e:
            report_error(source, e)
            exit_code = EXIT_FAILURE
            continue

        logger.info(
            "Formatted document",
            extra={
                "source": source,
                "changed": result.changed,
                "processing_time_ms": result.performance.processing_time_ms,
                "characters_per_second": result.performance.characters_per_second,
                "tokens_per_second": result.performance.tokens_per_second,
                "memory_delta_bytes": result.performance.memory_delta_bytes,
            },
        )

    return exit_code


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    prettifier = XMLPrettifier(config=build_config(args))
    unformatted = 0
    failed = 0

    for path in args.paths:
        try:
            canonical = prettifier.is_canonical(read_input(path))
        except (PrettifyError, OSError) as e:
            report_error(path, e)
            failed += 1
            continue
        if not canonical:
            unformatted += 1
            print(f"would reformat {path}")

    total = len(args.paths)
    print(
        f"{total} file(s) checked, {unformatted} would be reformatted, "
        f"{failed} failed",
        file=sys.stderr,
    )
    return EXIT_OK if unformatted == 0 and failed == 0 else EXIT_FAILURE


def format_tokens(tokens: List[Dict[str, Any]], format_type: str) -> str:
    """Format token dumps for output."""
    if format_type == "json":
        return json.dumps(tokens, indent=2, ensure_ascii=False)

    lines = []
    for token in tokens:
        location = f"{token['line']}:{token['column']}"
        detail = repr(token["value"])
        if token["type"] == "OPEN_TAG":
            attributes = " ".join(f"{name}={value!r}" for name, value in token["attributes"])
            detail = f"{token['value']} [{attributes}]" if attributes else token["value"]
            if token["self_closing"]:
                detail += " (self-closing)"
        elif token["type"] == "CLOSE_TAG":
            detail = token["value"]
        elif token["type"] == "PROCESSING_INSTRUCTION":
            detail = f"{token['target']} {token['value']!r}"
        lines.append(f"{location:>9} {token['type']:<22} {detail}".rstrip())
    return "\n".join(lines)


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle tokens command."""
    source = "<stdin>" if args.path == STDIN_MARKER else args.path
    dumped: List[Dict[str, Any]] = []
    try:
        char_result = CharacterStreamProcessor().process(read_input(args.path))
        tokenizer = XMLTokenizer(
            char_result.text,
            encoding=char_result.encoding.encoding,
            byte_base=char_result.bom_length,
        )
        for token in tokenizer.tokenize():
            dumped.append(token.to_dict())
    except (PrettifyError, OSError) as e:
        # Tokens seen before the defect still help locate it
        if dumped:
            print(format_tokens(dumped, args.format))
        report_error(source, e)
        return EXIT_FAILURE

    print(format_tokens(dumped, args.format))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "format":
            return cmd_format(args)
        if args.command == "check":
            return cmd_check(args)
        if args.command == "tokens":
            return cmd_tokens(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return EXIT_FAILURE

    except ConfigValidationError as e:
        print(f"Invalid option: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
