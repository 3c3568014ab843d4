from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from cjklint.linting.chartypes import CharType
from cjklint.linting.tokens import Group, Node, Token

Nodes = Union[Sequence[Node], Group]
Predicate = Callable[[Token, int, Nodes], Any]
Visitor = Callable[[Token, int, Nodes, Any], Any]


@dataclass(frozen=True)
class ByType:
    type: CharType

    def match(self, token: Token, index: int, tokens: Nodes) -> Any:
        return token.type == self.type


@dataclass(frozen=True)
class BySubstring:
    text: str

    def match(self, token: Token, index: int, tokens: Nodes) -> Any:
        return re.search(re.escape(self.text), token.content)


@dataclass(frozen=True)
class ByPattern:
    pattern: re.Pattern[str]

    def match(self, token: Token, index: int, tokens: Nodes) -> Any:
        return self.pattern.search(token.content)


@dataclass(frozen=True)
class ByPredicate:
    fn: Predicate

    def match(self, token: Token, index: int, tokens: Nodes) -> Any:
        return self.fn(token, index, tokens)


Matcher = Union[ByType, BySubstring, ByPattern, ByPredicate]


def as_matcher(filter: Any) -> Matcher:  # noqa: A002
    """Build a Matcher from the loose filter forms rules may declare."""

    if isinstance(filter, (ByType, BySubstring, ByPattern, ByPredicate)):
        return filter
    if isinstance(filter, Mapping):
        if "type" not in filter:
            raise TypeError("type filter must contain a 'type' key")
        return ByType(CharType(filter["type"]))
    if isinstance(filter, CharType):
        return ByType(filter)
    if isinstance(filter, str):
        return BySubstring(filter)
    if isinstance(filter, re.Pattern):
        return ByPattern(filter)
    if callable(filter):
        return ByPredicate(filter)
    raise TypeError(f"unsupported filter: {filter!r}")


def iter_tokens(tokens: Nodes) -> Iterator[tuple[Token, int, Nodes]]:
    """Yield (token, index, containing sequence) in document order, depth-first."""

    stack: list[tuple[Nodes, int]] = [(tokens, 0)]
    while stack:
        seq, i = stack.pop()
        if i >= len(seq):
            continue
        stack.append((seq, i + 1))
        node = seq[i]
        if isinstance(node, Group):
            stack.append((node, 0))
            continue
        yield node, i, seq


def travel(tokens: Nodes, matcher: Any, visitor: Visitor) -> None:
    m = as_matcher(matcher)
    for token, index, seq in iter_tokens(tokens):
        result = m.match(token, index, seq)
        if result:
            visitor(token, index, seq, result)


def iter_groups(tokens: Nodes) -> Iterator[tuple[Group, int, Nodes]]:
    """Yield (group, index, containing sequence) for every group, outer before inner."""

    stack: list[tuple[Nodes, int]] = [(tokens, 0)]
    while stack:
        seq, i = stack.pop()
        if i >= len(seq):
            continue
        stack.append((seq, i + 1))
        node = seq[i]
        if isinstance(node, Group):
            yield node, i, seq
            stack.append((node, 0))
