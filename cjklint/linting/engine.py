from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from cjklint.linting.tokens import Group, Mark, MarkSide, Node, ParseResult, Token
from cjklint.linting.travel import ByPredicate, Nodes, as_matcher, iter_groups, travel

Handler = Callable[[Token, int, Nodes, Any, Sequence[Mark]], Any]
GroupHandler = Callable[[Group, int, Nodes], Any]


@dataclass(frozen=True)
class Rule:
    name: str
    filter: Any = None
    handler: Handler | None = None
    # Called once per quote group, including empty groups and groups that
    # only hold other groups.
    group_handler: GroupHandler | None = None


class _MarksSoFar(Sequence[Mark]):
    """Read-only prefix of the marks list, fixed at the moment of the call."""

    __slots__ = ("_marks", "_size")

    def __init__(self, marks: list[Mark], size: int) -> None:
        self._marks = marks
        self._size = size

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index):  # noqa: ANN001
        if isinstance(index, slice):
            return tuple(self._marks[: self._size][index])
        if index < 0:
            index += self._size
        if not 0 <= index < self._size:
            raise IndexError("mark index out of range")
        return self._marks[index]

    def __repr__(self) -> str:
        return f"_MarksSoFar({self._marks[: self._size]!r})"


def _render_state(tokens: Sequence[Node]) -> list[tuple[str, ...]]:
    out: list[tuple[str, ...]] = []
    stack = [iter(tokens)]
    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        if isinstance(node, Group):
            out.append((node.start_content, node.inner_space_before, node.end_content, node.space_after))
            stack.append(iter(node.tokens))
        else:
            out.append((node.content, node.space_after))
    return out


def process_rule(data: ParseResult, rule: Any) -> int:
    """Apply one rule over the parsed stream.

    The handler is called as ``handler(token, index, tokens, match, marks)``
    where ``marks`` holds every bracket pair whose opening token has been
    traversed so far. A rule may also carry ``group_handler``, called as
    ``group_handler(group, index, parent)`` for every group after the token
    pass. Returns how many stream nodes render differently afterwards.
    """

    handler = getattr(rule, "handler", None)
    group_handler = getattr(rule, "group_handler", None)
    before = _render_state(data.tokens)

    if handler is not None:
        matcher = as_matcher(rule.filter)
        marks: list[Mark] = []
        seen: set[int] = set()

        def track(token: Token, index: int, tokens: Nodes) -> Any:
            if token.mark is not None and token.mark_side is MarkSide.LEFT and id(token.mark) not in seen:
                seen.add(id(token.mark))
                marks.append(token.mark)
            return matcher.match(token, index, tokens)

        def visit(token: Token, index: int, tokens: Nodes, result: Any) -> None:
            handler(token, index, tokens, result, _MarksSoFar(marks, len(marks)))

        travel(data.tokens, ByPredicate(track), visit)

    if group_handler is not None:
        for group, index, parent in iter_groups(data.tokens):
            group_handler(group, index, parent)

    after = _render_state(data.tokens)
    return sum(1 for a, b in zip(before, after) if a != b)
