"""Locate markdown regions that must pass through linting untouched.

Detectors run in priority order over a working copy of the text in which
every region claimed by an earlier detector is already replaced by
placeholders, so later patterns can never match inside code, URLs, etc.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from cjklint.linting.chartypes import CharType
from cjklint.linting.parser import PLACEHOLDER
from cjklint.linting.tokens import IgnoredSpan, MarkSide

_LINE_LEAD = rf"^(?:[ \t]|{PLACEHOLDER})*"

_front_matter_re = re.compile(r"\A---[ \t]*\n.*?\n---[ \t]*(?=\n|\Z)", re.S)
_fence_re = re.compile(r"^[ \t]{0,3}(?P<fence>`{3,}|~{3,}).*?(?:^[ \t]{0,3}(?P=fence)[`~]*[ \t]*$|\Z)", re.S | re.M)
_container_re = re.compile(r"^(:::[^\n]*)\n(.+?)\n(:::)[ \t]*$", re.S | re.M)
_html_comment_re = re.compile(r"<!--.*?-->", re.S)
_template_re = re.compile(r"\{%.*?%\}|\{\{.*?\}\}")
_inline_code_re = re.compile(r"(?<!`)(`+)(?!`).+?(?<!`)\1(?!`)")
_autolink_re = re.compile(r"<(?:https?|ftp|mailto):[^<>\s]+>")
_html_tag_re = re.compile(r"</?([A-Za-z][A-Za-z0-9-]*)(?:\s[^<>]*)?/?>")
_footnote_def_re = re.compile(r"^[ \t]{0,3}(\[\^[^\]\n]+\]:)", re.M)
_link_def_re = re.compile(r"^[ \t]{0,3}\[(?!\^)[^\]\n]+\]:[ \t]*\S[^\n]*$", re.M)
_blockquote_re = re.compile(r"^[ \t]{0,3}(>(?:[ \t]?>)*)", re.M)
_heading_re = re.compile(_LINE_LEAD + r"(#{1,6})(?=[ \t]|$)", re.M)
_list_marker_re = re.compile(_LINE_LEAD + r"([-*+]|\d{1,9}[.)])(?=[ \t])", re.M)
_footnote_ref_re = re.compile(r"\[\^[^\]\s]+\]")
_link_re = re.compile(
    r"(!?\[)[^\[\]\n]*"
    r"(\]\((?:[^()\s]|\([^()\s]*\))*(?:[ \t]+(?:\"[^\"\n]*\"|'[^'\n]*'|\([^()\n]*\)))?\)|\]\[[^\[\]\n]*\])"
)
_url_re = re.compile(r"(?:https?|ftp)://[A-Za-z0-9\-._~:/?#@!$&'*+,;=%]+(?<![.,;:!?'])")
# `_` runs flank only against half-width letters and digits: a CJK neighbour may
# later be pushed away by a space, which must not turn a literal `_` into emphasis.
_HALF_WORD = r"0-9A-Za-zªµºÀ-ɏͰ-ϿЀ-ԯ"
_strong_re = re.compile(
    r"(?<![*\\])(\*\*)(?=[^\s*]).+?(?<=[^\s*])(\*\*)(?!\*)"
    rf"|(?<![_{_HALF_WORD}\\])(__)(?=[^\s_]).+?(?<=[^\s_])(__)(?![_{_HALF_WORD}])"
)
_delete_re = re.compile(r"(?<![~\\])(~~)(?=\S).+?(?<=\S)(~~)(?!~)")
_emphasis_re = re.compile(
    r"(?<![*\\])(\*)(?=[^\s*]).+?(?<=[^\s*])(\*)(?!\*)"
    rf"|(?<![_{_HALF_WORD}\\])(_)(?=[^\s_]).+?(?<=[^\s_])(_)(?![_{_HALF_WORD}])"
)

_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"}
)


class _Claims:
    def __init__(self, text: str) -> None:
        self.text = text
        self.working = text
        self.taken = bytearray(len(text))
        self.spans: list[IgnoredSpan] = []

    def claim(self, *parts: tuple[int, int, str, CharType, MarkSide | None]) -> bool:
        """Claim every part or none of them."""

        for start, end, *_rest in parts:
            if start >= end or any(self.taken[start:end]):
                return False
        for start, end, meta, kind, side in parts:
            self.taken[start:end] = b"\x01" * (end - start)
            self.spans.append(
                IgnoredSpan(index=start, length=end - start, raw=self.text[start:end], meta=meta, kind=kind, side=side)
            )
        return True

    def commit(self) -> None:
        self.working = "".join(PLACEHOLDER if flag else ch for ch, flag in zip(self.text, self.taken))

    def whole(self, pattern: re.Pattern[str], meta: str, kind: CharType = CharType.RAW, group: int = 0) -> None:
        for m in pattern.finditer(self.working):
            self.claim((m.start(group), m.end(group), meta, kind, None))
        self.commit()


def _pairs(claims: _Claims, pattern: re.Pattern[str], names: Iterable[tuple[int, int, str]]) -> None:
    """Claim opening/closing delimiter groups as left/right hyper marks."""

    names = list(names)
    for m in pattern.finditer(claims.working):
        for open_group, close_group, kind in names:
            if m.group(open_group) is None:
                continue
            claims.claim(
                (m.start(open_group), m.end(open_group), f"{kind}-start", CharType.HYPER_MARK, MarkSide.LEFT),
                (m.start(close_group), m.end(close_group), f"{kind}-end", CharType.HYPER_MARK, MarkSide.RIGHT),
            )
            break
    claims.commit()


def _containers(claims: _Claims) -> None:
    for m in _container_re.finditer(claims.working):
        name = m.group(1)[3:].strip()
        claims.claim(
            (m.start(1), m.end(1), f"vuepress-{name}-start", CharType.RAW, None),
            (m.start(3), m.end(3), f"vuepress-{name}-end", CharType.RAW, None),
        )
    claims.commit()


def _html_tags(claims: _Claims) -> None:
    for m in _html_tag_re.finditer(claims.working):
        tag = m.group(0)
        if tag.startswith("</"):
            meta, side = "html-close", MarkSide.RIGHT
        elif tag.endswith("/>") or m.group(1).lower() in _VOID_TAGS:
            meta, side = "html-void", None
        else:
            meta, side = "html-open", MarkSide.LEFT
        claims.claim((m.start(), m.end(), meta, CharType.HYPER_MARK, side))
    claims.commit()


def _links(claims: _Claims) -> None:
    for m in _link_re.finditer(claims.working):
        kind = "image" if m.group(1) == "![" else "link"
        claims.claim(
            (m.start(1), m.end(1), f"{kind}-start", CharType.HYPER_MARK, MarkSide.LEFT),
            (m.start(2), m.end(2), f"{kind}-end", CharType.HYPER_MARK, MarkSide.RIGHT),
        )
    claims.commit()


def find_ignored_spans(text: str, *, vuepress: bool = True) -> list[IgnoredSpan]:
    """Return the sorted, non-overlapping regions of ``text`` to leave untouched."""

    claims = _Claims(text)

    claims.whole(_front_matter_re, "front-matter")
    claims.whole(_fence_re, "fence")
    if vuepress:
        _containers(claims)
    claims.whole(_html_comment_re, "html-comment")
    claims.whole(_template_re, "template")
    claims.whole(_inline_code_re, "inline-code", CharType.CODE)
    claims.whole(_autolink_re, "autolink", CharType.CODE)
    _html_tags(claims)

    claims.whole(_footnote_def_re, "footnote-definition", group=1)
    claims.whole(_link_def_re, "link-definition")
    claims.whole(_blockquote_re, "block-prefix", group=1)
    claims.whole(_heading_re, "block-prefix", group=1)
    claims.whole(_list_marker_re, "block-prefix", group=1)

    claims.whole(_footnote_ref_re, "footnote", CharType.CODE)
    _links(claims)
    claims.whole(_url_re, "url", CharType.CODE)

    _pairs(claims, _strong_re, [(1, 2, "strong"), (3, 4, "strong")])
    _pairs(claims, _delete_re, [(1, 2, "delete")])
    _pairs(claims, _emphasis_re, [(1, 2, "emphasis"), (3, 4, "emphasis")])

    return sorted(claims.spans, key=lambda s: s.index)
