from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from cjklint.linting.chartypes import CharType
from cjklint.linting.config import LintConfig, option_name
from cjklint.linting.engine import Rule
from cjklint.linting.tokens import Group, Mark, MarkSide, Node, Token
from cjklint.linting.travel import ByPattern, ByPredicate, ByType, Nodes, iter_tokens

_HALF_TO_FULL = {",": "，", ".": "。", ";": "；", ":": "：", "!": "！", "?": "？"}
_HALF_PUNCT = frozenset(_HALF_TO_FULL)
_FULL_PUNCT = frozenset("，。、；：！？")

_FULL_BRACKETS = frozenset("（）［］｛｝【】〔〕〖〗")
_FULL_QUOTE_STARTS = frozenset("“‘「『《〈")

_DATE_UNITS_AFTER_NUMBER = frozenset("年月日号")
_DATE_UNITS_BEFORE_NUMBER = frozenset("年月")

# Hyper marks whose inside should hug the text (`[ a ](b)` -> `[a](b)`).
_TRIM_INSIDE_META_PREFIXES = ("link-", "image-", "strong-", "emphasis-", "delete-")


# -- node helpers -------------------------------------------------------------


def _neighbor(tokens: Nodes, index: int, offset: int) -> Node | None:
    j = index + offset
    if 0 <= j < len(tokens):
        return tokens[j]
    return None


def _is_token(node: Node | None, *types: CharType) -> bool:
    return isinstance(node, Token) and node.type in types


def _is_content(node: Node | None) -> bool:
    return _is_token(node, CharType.CONTENT_HALF, CharType.CONTENT_FULL, CharType.CODE)


def _is_half_content(node: Node | None) -> bool:
    return _is_token(node, CharType.CONTENT_HALF, CharType.CODE)


def _is_full_content(node: Node | None) -> bool:
    return _is_token(node, CharType.CONTENT_FULL)


def _is_mark(node: Node | None, side: MarkSide) -> bool:
    return _is_token(node, CharType.PUNCTUATION_MARK) and node.mark_side is side


def _is_word_end(node: Node | None) -> bool:
    """Something a trailing punctuation can attach to."""

    return _is_content(node) or isinstance(node, Group) or _is_mark(node, MarkSide.RIGHT)


def _is_word_start(node: Node | None) -> bool:
    return _is_content(node) or isinstance(node, Group) or _is_mark(node, MarkSide.LEFT)


def _ends_line(node: Node) -> bool:
    return "\n" in node.space_after or "\r" in node.space_after


def _can_respace(node: Node | None) -> bool:
    if node is None or _is_token(node, CharType.RAW):
        return False
    return not _ends_line(node)


def _set_space(node: Node | None, value: str) -> None:
    if _can_respace(node):
        node.space_after = value


def _ensure_space(node: Node | None) -> None:
    _set_space(node, " ")


def _contains_full_content(group: Group) -> bool:
    return any(token.type is CharType.CONTENT_FULL for token, _i, _seq in iter_tokens(group))


def _has_full(node: Node | None) -> bool:
    if isinstance(node, Group):
        return _contains_full_content(node)
    return _is_full_content(node)


def _line_has_full_content(tokens: Nodes, index: int) -> bool:
    i = index - 1
    while i >= 0 and not _ends_line(tokens[i]):
        if _has_full(tokens[i]):
            return True
        i -= 1
    if _ends_line(tokens[index]):
        return False
    i = index + 1
    while i < len(tokens):
        if _has_full(tokens[i]):
            return True
        if _ends_line(tokens[i]):
            break
        i += 1
    return False


# -- unify-punctuation --------------------------------------------------------


def _is_unifiable(token: Token, _index: int, _tokens: Nodes) -> bool:
    return token.type is CharType.PUNCTUATION_HALF and token.content in _HALF_PUNCT


def _unify_punctuation(token: Token, index: int, tokens: Nodes, _match: Any, _marks: Sequence[Mark]) -> None:
    prev = _neighbor(tokens, index, -1)
    nxt = _neighbor(tokens, index, 1)
    if not _is_word_end(prev):
        return
    if _is_half_content(prev) and _is_half_content(nxt) and not token.space_after:
        # 3.14, 1,000, a.b
        return
    if nxt is None or _ends_line(token):
        widen = _has_full(prev) or _line_has_full_content(tokens, index)
    else:
        widen = _has_full(prev) or _has_full(nxt)
    if widen:
        token.content = _HALF_TO_FULL[token.content]


def _unify_quotes(group: Group, index: int, parent: Nodes) -> None:
    if group.start_content != '"' or group.end_content != '"':
        return
    prev = _neighbor(parent, index, -1)
    nxt = _neighbor(parent, index, 1)
    if _contains_full_content(group) or _is_full_content(prev) or _is_full_content(nxt):
        group.start_content = "“"
        group.end_content = "”"


UNIFY_PUNCTUATION = Rule(
    name="unify-punctuation",
    filter=ByPredicate(_is_unifiable),
    handler=_unify_punctuation,
    group_handler=_unify_quotes,
)


# -- space-full-width-content -------------------------------------------------


def _space_full_width_content(token: Token, index: int, tokens: Nodes, _match: Any, _marks: Sequence[Mark]) -> None:
    nxt = _neighbor(tokens, index, 1)
    if not _is_content(nxt):
        return
    if token.type is CharType.CODE and nxt.type is CharType.CODE:
        return
    if token.type == nxt.type and token.type is not CharType.CODE:
        return
    _ensure_space(token)


SPACE_FULL_WIDTH_CONTENT = Rule(
    name="space-full-width-content",
    filter=ByPredicate(lambda token, _i, _tokens: _is_content(token)),
    handler=_space_full_width_content,
)


# -- space-punctuation --------------------------------------------------------


def _is_full_punctuation(token: Token) -> bool:
    return all(ch in _FULL_PUNCT for ch in token.content)


# Judged by content: unify-punctuation may already have widened a half-width token.
def _is_spaced_punctuation(token: Token, _index: int, _tokens: Nodes) -> bool:
    if token.type not in (CharType.PUNCTUATION_HALF, CharType.PUNCTUATION_FULL):
        return False
    return all(ch in _HALF_PUNCT for ch in token.content) or _is_full_punctuation(token)


def _space_punctuation(token: Token, index: int, tokens: Nodes, _match: Any, _marks: Sequence[Mark]) -> None:
    prev = _neighbor(tokens, index, -1)
    nxt = _neighbor(tokens, index, 1)

    if _is_full_punctuation(token):
        _set_space(prev, "")
        if nxt is not None:
            _set_space(token, "")
        return

    if not _is_word_end(prev):
        return
    _set_space(prev, "")
    if nxt is None:
        return
    if _is_half_content(prev) and _is_half_content(nxt) and not token.space_after:
        return
    if _is_word_start(nxt):
        _ensure_space(token)


SPACE_PUNCTUATION = Rule(
    name="space-punctuation",
    filter=ByPredicate(_is_spaced_punctuation),
    handler=_space_punctuation,
)


# -- space-brackets -----------------------------------------------------------


def _space_brackets(token: Token, index: int, tokens: Nodes, _match: Any, _marks: Sequence[Mark]) -> None:
    full = token.content in _FULL_BRACKETS
    prev = _neighbor(tokens, index, -1)
    nxt = _neighbor(tokens, index, 1)

    if token.mark_side is MarkSide.LEFT:
        if nxt is not None:
            _set_space(token, "")
        if full:
            if _is_word_end(prev):
                _set_space(prev, "")
        elif _is_full_content(prev):
            _ensure_space(prev)
        return

    if prev is not None:
        _set_space(prev, "")
    if full:
        if _is_word_start(nxt):
            _set_space(token, "")
    elif _is_full_content(nxt):
        _ensure_space(token)


SPACE_BRACKETS = Rule(
    name="space-brackets",
    filter=ByType(CharType.PUNCTUATION_MARK),
    handler=_space_brackets,
)


# -- space-quotes ---------------------------------------------------------------


def _space_quotes(group: Group, index: int, parent: Nodes) -> None:
    if not any(ch in group.inner_space_before for ch in "\r\n"):
        group.inner_space_before = ""
    if len(group):
        _set_space(group[len(group) - 1], "")

    prev = _neighbor(parent, index, -1)
    nxt = _neighbor(parent, index, 1)
    if group.start_content in _FULL_QUOTE_STARTS:
        if _is_word_end(prev) or _is_token(prev, CharType.PUNCTUATION_HALF, CharType.PUNCTUATION_FULL):
            _set_space(prev, "")
        if nxt is not None and not _is_token(nxt, CharType.RAW, CharType.HYPER_MARK):
            _set_space(group, "")
        return

    if _is_content(prev):
        _ensure_space(prev)
    if _is_content(nxt):
        _ensure_space(group)


SPACE_QUOTES = Rule(
    name="space-quotes",
    group_handler=_space_quotes,
)


# -- space-hyper-marks ----------------------------------------------------------


def _needs_gap(inner: Node | None, outer: Node | None) -> bool:
    if not (_is_content(inner) and _is_content(outer)):
        return False
    return _is_half_content(inner) or _is_half_content(outer)


def _trims_inside(token: Token) -> bool:
    return bool(token.meta) and token.meta.startswith(_TRIM_INSIDE_META_PREFIXES)


def _space_hyper_marks(token: Token, index: int, tokens: Nodes, _match: Any, _marks: Sequence[Mark]) -> None:
    prev = _neighbor(tokens, index, -1)
    nxt = _neighbor(tokens, index, 1)

    if token.mark_side is MarkSide.LEFT:
        if nxt is not None and _trims_inside(token):
            _set_space(token, "")
        if _needs_gap(nxt, prev):
            _ensure_space(prev)
    elif token.mark_side is MarkSide.RIGHT:
        if prev is not None and _trims_inside(token):
            _set_space(prev, "")
        if _needs_gap(prev, nxt):
            _ensure_space(token)


SPACE_HYPER_MARKS = Rule(
    name="space-hyper-marks",
    filter=ByType(CharType.HYPER_MARK),
    handler=_space_hyper_marks,
)


# -- case-datetime --------------------------------------------------------------


def _case_datetime(token: Token, index: int, tokens: Nodes, _match: Any, _marks: Sequence[Mark]) -> None:
    prev = _neighbor(tokens, index, -1)
    nxt = _neighbor(tokens, index, 1)
    if not _is_full_content(nxt) or nxt.content[0] not in _DATE_UNITS_AFTER_NUMBER:
        return
    _set_space(token, "")
    if _is_full_content(prev) and prev.content[-1] in _DATE_UNITS_BEFORE_NUMBER:
        _set_space(prev, "")


CASE_DATETIME = Rule(
    name="case-datetime",
    filter=ByPattern(re.compile(r"^[0-9]+$")),
    handler=_case_datetime,
)


DEFAULT_RULES: tuple[Rule, ...] = (
    UNIFY_PUNCTUATION,
    SPACE_FULL_WIDTH_CONTENT,
    SPACE_PUNCTUATION,
    SPACE_BRACKETS,
    SPACE_QUOTES,
    SPACE_HYPER_MARKS,
    CASE_DATETIME,
)


def rules_for_config(config: LintConfig) -> tuple[Rule, ...]:
    return tuple(rule for rule in DEFAULT_RULES if getattr(config, option_name(rule.name), True))
