from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from cjklint.linting.config import LintConfig
from cjklint.linting.engine import Rule, process_rule
from cjklint.linting.join import join
from cjklint.linting.markdown import find_ignored_spans
from cjklint.linting.parser import mask_spans, parse, restore_spans
from cjklint.linting.rules import DEFAULT_RULES, rules_for_config
from cjklint.linting.tokens import IgnoredSpan

logger = logging.getLogger(__name__)


@dataclass
class LintResult:
    text: str
    stats: dict[str, int]


def run_lint(
    text: str,
    config: LintConfig | None = None,
    *,
    rules: Iterable[Rule] | None = None,
    spans: Sequence[IgnoredSpan] | None = None,
) -> LintResult:
    config = config or LintConfig()
    if spans is None:
        spans = find_ignored_spans(text, vuepress=config.vuepress_containers) if config.markdown else []
    selected = tuple(rules) if rules is not None else rules_for_config(config)

    masked = mask_spans(text, spans)
    data = parse(masked, spans)

    stats: dict[str, int] = {}
    for rule in selected:
        stats[rule.name] = stats.get(rule.name, 0) + process_rule(data, rule)

    restore_spans(data.tokens, spans)
    out = join(data.tokens)
    logger.debug(
        "linted %d chars: spans=%d marks=%d groups=%d stats=%s",
        len(text),
        len(spans),
        len(data.marks),
        len(data.groups),
        stats,
    )
    return LintResult(text=out, stats=stats)


def lint(text: str, rules: Iterable[Rule] | None = None) -> str:
    """Format ``text`` with ``rules`` (the built-in set by default)."""

    return run_lint(text, rules=DEFAULT_RULES if rules is None else rules).text
