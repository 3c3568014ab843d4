from __future__ import annotations

from collections.abc import Iterator, MutableSequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Union

from cjklint.linting.chartypes import CharType


class MarkSide(StrEnum):
    LEFT = "left"
    RIGHT = "right"


@dataclass
class Mark:
    """A resolved bracket pair, shared by its opening and closing token."""

    start_char: str
    start_index: int
    end_char: str
    end_index: int


@dataclass
class Token:
    type: CharType
    raw: str
    content: str
    index: int
    length: int
    raw_space_after: str = ""
    space_after: str = ""
    mark_side: MarkSide | None = None
    mark: Mark | None = None
    meta: str | None = None

    @property
    def end(self) -> int:
        return self.index + self.length


@dataclass
class Group:
    """A resolved quote pair whose enclosed nodes live in ``tokens``.

    Behaves as a read-only sequence of its nodes so rules can index into it the
    same way they index into the top-level token list.
    """

    start_index: int
    start_char: str
    end_index: int = -1
    end_char: str = ""
    inner_space_before: str = ""
    raw_inner_space_before: str = ""
    start_content: str = ""
    end_content: str = ""
    space_after: str = ""
    raw_space_after: str = ""
    tokens: list[Node] = field(default_factory=list)
    parent: MutableSequence[Node] | Group | None = field(default=None, repr=False, compare=False)
    slot: int = field(default=-1, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.start_content:
            self.start_content = self.start_char

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index):  # noqa: ANN001
        return self.tokens[index]

    def __iter__(self) -> Iterator[Node]:
        return iter(self.tokens)

    def position(self) -> int:
        """Index of this group inside its parent sequence (-1 when detached).

        ``slot`` is recorded when the tokenizer places the group; the scan only
        runs for groups assembled by hand.
        """

        parent = self.parent
        if parent is None:
            return -1
        if 0 <= self.slot < len(parent) and parent[self.slot] is self:
            return self.slot
        for i, node in enumerate(parent):
            if node is self:
                self.slot = i
                return i
        return -1


Node = Union[Token, Group]


@dataclass(frozen=True)
class IgnoredSpan:
    """A region excluded from linting, restored verbatim after joining."""

    index: int
    length: int
    raw: str
    meta: str
    kind: CharType = CharType.RAW
    side: MarkSide | None = None

    @property
    def end(self) -> int:
        return self.index + self.length


@dataclass
class ParseResult:
    tokens: list[Node]
    marks: list[Mark] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
