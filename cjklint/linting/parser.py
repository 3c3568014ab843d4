from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from cjklint.linting.chartypes import CharType, classify
from cjklint.linting.tokens import Group, IgnoredSpan, Mark, MarkSide, Node, ParseResult, Token

PLACEHOLDER = "￼"

BRACKET_PAIRS: dict[str, str] = {
    "(": ")",
    "[": "]",
    "{": "}",
    "（": "）",
    "［": "］",
    "｛": "｝",
    "【": "】",
    "〔": "〕",
    "〖": "〗",
}
_BRACKET_CLOSERS = frozenset(BRACKET_PAIRS.values())

QUOTE_PAIRS: dict[str, str] = {
    '"': '"',
    "“": "”",
    "‘": "’",
    "「": "」",
    "『": "』",
    "《": "》",
    "〈": "〉",
}
_QUOTE_CLOSERS = frozenset(QUOTE_PAIRS.values())


class SpanError(ValueError):
    pass


def validate_spans(text: str, spans: Iterable[IgnoredSpan]) -> list[IgnoredSpan]:
    """Return spans sorted by offset; raise SpanError on any contract violation."""

    ordered = sorted(spans, key=lambda s: s.index)
    prev_end = 0
    for span in ordered:
        if span.length <= 0:
            raise SpanError(f"empty span at {span.index} ({span.meta})")
        if span.index < 0 or span.end > len(text):
            raise SpanError(f"span {span.index}..{span.end} ({span.meta}) exceeds document length {len(text)}")
        if span.index < prev_end:
            raise SpanError(f"span {span.index}..{span.end} ({span.meta}) overlaps previous span ending at {prev_end}")
        if len(span.raw) != span.length:
            raise SpanError(f"span {span.index} ({span.meta}) raw length {len(span.raw)} != {span.length}")
        prev_end = span.end
    return ordered


def mask_spans(text: str, spans: Sequence[IgnoredSpan]) -> str:
    """Replace every span with a same-length run of PLACEHOLDER characters."""

    if not spans:
        return text
    parts: list[str] = []
    cursor = 0
    for span in validate_spans(text, spans):
        if text[span.index : span.end] != span.raw:
            raise SpanError(f"span {span.index} ({span.meta}) does not match the document text")
        parts.append(text[cursor : span.index])
        parts.append(PLACEHOLDER * span.length)
        cursor = span.end
    parts.append(text[cursor:])
    return "".join(parts)


def restore_spans(tokens: Sequence[Node], spans: Sequence[IgnoredSpan]) -> int:
    """Put each span's original text back into the token built from it."""

    by_index = {span.index: span for span in spans}
    restored = 0
    stack: list[Iterable[Node]] = [iter(tokens)]
    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        if isinstance(node, Group):
            stack.append(iter(node.tokens))
            continue
        if node.type in (CharType.RAW, CharType.CODE, CharType.HYPER_MARK):
            span = by_index.get(node.index)
            if span is not None:
                node.content = span.raw
                restored += 1
    return restored


@dataclass
class _Frame:
    nodes: list[Node]
    group: Group | None = None
    brackets: list[Token] = field(default_factory=list)

    def container(self, root: list[Node]) -> list[Node] | Group:
        return self.group if self.group is not None else root


class _Tokenizer:
    def __init__(self, text: str, spans: Sequence[IgnoredSpan]) -> None:
        self.text = text
        self.spans = {span.index: span for span in spans}
        self.root: list[Node] = []
        self.frames: list[_Frame] = [_Frame(nodes=self.root)]
        self.marks: list[Mark] = []
        self.groups: list[Group] = []
        self.run_start = -1
        self.run_type: CharType | None = None

    # -- runs -------------------------------------------------------------

    def _close_run(self, end: int) -> None:
        if self.run_type is None:
            return
        raw = self.text[self.run_start : end]
        self._append(Token(type=self.run_type, raw=raw, content=raw, index=self.run_start, length=len(raw)))
        self.run_type = None
        self.run_start = -1

    def _append(self, node: Node) -> None:
        frame = self.frames[-1]
        if isinstance(node, Group):
            node.parent = frame.container(self.root)
            node.slot = len(frame.nodes)
        frame.nodes.append(node)

    def _single(self, i: int, ch: str) -> Token:
        tok = Token(type=classify(ch), raw=ch, content=ch, index=i, length=1)
        self._append(tok)
        return tok

    # -- whitespace ---------------------------------------------------------

    def _attach_space(self, start: int, run: str) -> None:
        frame = self.frames[-1]
        if frame.nodes:
            last = frame.nodes[-1]
            last.raw_space_after += run
            last.space_after += run
        elif frame.group is not None:
            frame.group.raw_inner_space_before += run
            frame.group.inner_space_before += run
        else:
            self._append(Token(type=CharType.SPACE, raw=run, content=run, index=start, length=len(run)))

    # -- brackets -------------------------------------------------------------

    def _bracket(self, i: int, ch: str) -> None:
        tok = self._single(i, ch)
        stack = self.frames[-1].brackets
        if ch in BRACKET_PAIRS:
            stack.append(tok)
            return
        if not stack or BRACKET_PAIRS[stack[-1].raw] != ch:
            return
        opener = stack.pop()
        mark = Mark(start_char=opener.raw, start_index=opener.index, end_char=ch, end_index=i)
        for side, t in ((MarkSide.LEFT, opener), (MarkSide.RIGHT, tok)):
            t.type = CharType.PUNCTUATION_MARK
            t.mark_side = side
            t.mark = mark
        self.marks.append(mark)

    # -- quotes ---------------------------------------------------------------

    def _quote(self, i: int, ch: str) -> None:
        top = self.frames[-1].group
        if top is not None and QUOTE_PAIRS[top.start_char] == ch:
            frame = self.frames.pop()
            group = frame.group
            group.end_index = i
            group.end_char = ch
            group.end_content = ch
            self._append(group)
            self.groups.append(group)
            return
        if ch in QUOTE_PAIRS:
            group = Group(start_index=i, start_char=ch)
            self.frames.append(_Frame(nodes=group.tokens, group=group))
            return
        # Closer without a matching opener.
        self._single(i, ch)

    def _unwind(self) -> None:
        """Flatten every open quote frame back into its parent."""

        while len(self.frames) > 1:
            frame = self.frames.pop()
            group = frame.group
            opener = Token(
                type=classify(group.start_char),
                raw=group.start_char,
                content=group.start_char,
                index=group.start_index,
                length=1,
                raw_space_after=group.raw_inner_space_before,
                space_after=group.inner_space_before,
            )
            self._append(opener)
            for node in frame.nodes:
                self._append(node)
        self.frames[0].brackets.clear()

    # -- main loop ------------------------------------------------------------

    def run(self) -> ParseResult:
        text = self.text
        n = len(text)
        i = 0
        while i < n:
            span = self.spans.get(i)
            if span is not None:
                self._close_run(i)
                self._append(
                    Token(
                        type=span.kind,
                        raw=text[i : span.end],
                        content=text[i : span.end],
                        index=i,
                        length=span.length,
                        mark_side=span.side,
                        meta=span.meta,
                    )
                )
                i = span.end
                continue

            ch = text[i]
            kind = classify(ch)
            if kind is CharType.SPACE:
                self._close_run(i)
                j = i + 1
                while j < n and j not in self.spans and classify(text[j]) is CharType.SPACE:
                    j += 1
                run = text[i:j]
                self._attach_space(i, run)
                if _is_paragraph_break(run):
                    self._unwind()
                i = j
                continue

            if ch in QUOTE_PAIRS or ch in _QUOTE_CLOSERS:
                self._close_run(i)
                self._quote(i, ch)
            elif ch in BRACKET_PAIRS or ch in _BRACKET_CLOSERS:
                self._close_run(i)
                self._bracket(i, ch)
            elif kind is not self.run_type:
                self._close_run(i)
                self.run_start = i
                self.run_type = kind
            i += 1

        self._close_run(n)
        self._unwind()
        self.marks.sort(key=lambda m: m.start_index)
        self.groups.sort(key=lambda g: g.start_index)
        return ParseResult(tokens=self.root, marks=self.marks, groups=self.groups)


def _is_paragraph_break(run: str) -> bool:
    return run.count("\n") >= 2 or run.count("\r") >= 2


def parse(text: str, ignored: Sequence[IgnoredSpan] = ()) -> ParseResult:
    """Tokenize ``text`` into a stream of tokens and quote groups.

    ``ignored`` spans each become one opaque token (raw, code or hyper-mark)
    that never merges with its neighbours.
    """

    spans = validate_spans(text, ignored)
    return _Tokenizer(text, spans).run()
