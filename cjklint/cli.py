"""Command line front end.

  cjklint README.md docs/*.md         print linted text
  cjklint --write docs/*.md           rewrite files in place
  cjklint --check docs/*.md           exit 1 if any file would change
  echo '汉字和English' | cjklint      read stdin
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from cjklint.linting.config import LintConfig, option_name
from cjklint.linting.pipeline import LintResult, run_lint
from cjklint.linting.rules import DEFAULT_RULES
from cjklint.logging_setup import ensure_console_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CHANGED = 1
EXIT_IO_ERROR = 2


def _decode_text(data: bytes) -> str:
    for enc in ("utf-8-sig", "utf-8", "gb18030"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def _build_config(args: argparse.Namespace) -> LintConfig:
    overrides: dict[str, bool] = {option_name(name): False for name in args.disable}
    if args.no_markdown:
        overrides["markdown"] = False
    return replace(LintConfig(), **overrides)


def _format_stats(label: str, result: LintResult) -> str:
    parts = [f"{name}={count}" for name, count in result.stats.items() if count]
    return f"{label}: {' '.join(parts) if parts else 'no changes'}"


def _build_parser() -> argparse.ArgumentParser:
    rule_names = [rule.name for rule in DEFAULT_RULES]
    parser = argparse.ArgumentParser(prog="cjklint", description="Fix spacing and punctuation in CJK/Latin prose.")
    parser.add_argument("paths", nargs="*", help="Files to lint; '-' or nothing reads stdin")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--write", action="store_true", help="Rewrite files in place")
    mode.add_argument("--check", action="store_true", help="Report files that would change and exit 1")
    parser.add_argument(
        "--disable",
        action="append",
        default=[],
        choices=rule_names,
        metavar="RULE",
        help=f"Disable a rule (repeatable): {', '.join(rule_names)}",
    )
    parser.add_argument("--no-markdown", action="store_true", help="Treat input as plain prose")
    parser.add_argument("--stats", action="store_true", help="Print per-rule change counts to stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    ensure_console_logging()

    config = _build_config(args)
    paths = args.paths or ["-"]
    status = EXIT_OK

    for name in paths:
        if name == "-":
            text = _decode_text(sys.stdin.buffer.read())
        else:
            try:
                text = _decode_text(Path(name).read_bytes())
            except OSError as e:
                print(f"cjklint: cannot read {name}: {e.strerror or e}", file=sys.stderr)
                status = EXIT_IO_ERROR
                continue

        result = run_lint(text, config)
        changed = result.text != text
        label = "<stdin>" if name == "-" else name

        if args.stats:
            print(_format_stats(label, result), file=sys.stderr)

        if args.check:
            if changed:
                print(f"would reformat {label}")
                if status == EXIT_OK:
                    status = EXIT_CHANGED
            continue

        if args.write and name != "-":
            if changed:
                try:
                    Path(name).write_bytes(result.text.encode("utf-8"))
                except OSError as e:
                    print(f"cjklint: cannot write {name}: {e.strerror or e}", file=sys.stderr)
                    status = EXIT_IO_ERROR
                    continue
                logger.info("reformatted %s", name)
            continue

        sys.stdout.write(result.text)

    return status


if __name__ == "__main__":
    raise SystemExit(main())
