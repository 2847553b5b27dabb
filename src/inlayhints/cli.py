#!/usr/bin/env python3
"""CLI tool for computing inlay hints of Rust source files."""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .base import Hint
from .config import HintConfig, load_config
from .hints import inlay_hints
from .languages.rust import dump_tree, parse_rust
from .snapshot import SemanticSnapshot
from .syntax import LineIndex

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_source(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read {path}: {exc}", file=sys.stderr)
        return None


def _resolve_config(args: argparse.Namespace) -> HintConfig:
    """Config file and environment first, then command-line switches."""
    config = load_config(args.config)
    overrides: dict[str, object] = {}
    if args.no_type_hints:
        overrides["type_hints"] = False
    if args.no_parameter_hints:
        overrides["parameter_hints"] = False
    if args.no_chaining_hints:
        overrides["chaining_hints"] = False
    if args.max_length is not None:
        overrides["max_length"] = args.max_length
    return replace(config, **overrides) if overrides else config


def _format_hint(path: str, index: LineIndex, hint: Hint) -> str:
    line, col = index.line_col(hint.range.start)
    return f"{path}:{line + 1}:{col + 1} [{hint.kind.value}] {hint.label}"


def _cmd_hints(args: argparse.Namespace) -> int:
    """Print the hints for one file as text lines or a JSON document."""
    source = _read_source(args.file)
    if source is None:
        return 1

    if args.facts:
        try:
            sema = SemanticSnapshot.load(args.facts)
        except (OSError, ValueError) as exc:
            print(f"error: cannot load facts {args.facts}: {exc}", file=sys.stderr)
            return 1
    else:
        logger.info("No facts file given; only syntax-independent hints can appear")
        sema = SemanticSnapshot()

    try:
        config = _resolve_config(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    hints = inlay_hints(parse_rust(source), sema, config)

    if args.json:
        output = {"file": args.file, "hints": [hint.to_dict() for hint in hints]}
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        index = LineIndex(source)
        for hint in hints:
            print(_format_hint(args.file, index, hint))
    return 0


def _cmd_tree(args: argparse.Namespace) -> int:
    """Print the syntax tree of one file."""
    source = _read_source(args.file)
    if source is None:
        return 1
    print(dump_tree(parse_rust(source), include_trivia=args.trivia))
    return 0


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError("must be non-negative")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute inlay hints (types, parameter names, chains) for Rust source"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Hints command
    hints_parser = subparsers.add_parser("hints", help="Print the inlay hints of a file")
    hints_parser.add_argument("file", help="Rust source file")
    hints_parser.add_argument("--facts", help="Semantic facts JSON file")
    hints_parser.add_argument(
        "--config", help="Config JSON file (default: ./inlayhints.json when present)"
    )
    hints_parser.add_argument("--no-type-hints", action="store_true", help="Disable type hints")
    hints_parser.add_argument(
        "--no-parameter-hints", action="store_true", help="Disable parameter name hints"
    )
    hints_parser.add_argument(
        "--no-chaining-hints", action="store_true", help="Disable chaining hints"
    )
    hints_parser.add_argument(
        "--max-length", type=_non_negative_int, help="Maximum label length"
    )
    hints_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # Tree command
    tree_parser = subparsers.add_parser("tree", help="Print the syntax tree of a file")
    tree_parser.add_argument("file", help="Rust source file")
    tree_parser.add_argument(
        "--trivia", action="store_true", help="Include whitespace and comment tokens"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "hints":
        return _cmd_hints(args)
    if args.command == "tree":
        return _cmd_tree(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
