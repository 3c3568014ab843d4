from __future__ import annotations

from collections.abc import Sequence

from cjklint.linting.tokens import Group, Node


def join(tokens: Sequence[Node]) -> str:
    """Render a (possibly mutated) token stream back into text."""

    out: list[str] = []
    # Entries are either a node iterator or a closing string for a group.
    stack: list = [iter(tokens)]
    while stack:
        top = stack[-1]
        if isinstance(top, str):
            out.append(stack.pop())
            continue
        node = next(top, None)
        if node is None:
            stack.pop()
            continue
        if isinstance(node, Group):
            out.append(node.start_content)
            out.append(node.inner_space_before)
            stack.append(node.end_content + node.space_after)
            stack.append(iter(node.tokens))
            continue
        out.append(node.content)
        out.append(node.space_after)
    return "".join(out)
