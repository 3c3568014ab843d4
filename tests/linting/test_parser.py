from __future__ import annotations

import pytest

from cjklint.linting.chartypes import CharType
from cjklint.linting.join import join
from cjklint.linting.parser import PLACEHOLDER, SpanError, mask_spans, parse, restore_spans, validate_spans
from cjklint.linting.tokens import Group, IgnoredSpan, MarkSide, Token
from cjklint.linting.travel import iter_tokens


def _kinds(nodes) -> list[tuple[str, str]]:  # noqa: ANN001
    out = []
    for node in nodes:
        if isinstance(node, Group):
            out.append(("group", node.start_char + node.end_char))
        else:
            out.append((str(node.type), node.content))
    return out


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "\n\n",
        "汉字和English之间需要有空格比如 half width content。",
        '他说:"你好", "世界"....',
        "  leading and trailing  ",
        "(unclosed [brackets",
        "closers only ) ] 」”",
        "“a(b)c”",
        '"a\n\nb"',
        "a\r\n\r\nb",
        "《书名》和〈篇名〉",
    ],
)
def test_parse_then_join_is_identity(text: str) -> None:
    assert join(parse(text).tokens) == text


def test_offsets_cover_every_character_once() -> None:
    text = "关注 (watch) “你关心的” 仓库。"
    data = parse(text)
    covered = []
    for token, _i, _seq in iter_tokens(data.tokens):
        covered.extend(range(token.index, token.end))
        covered.extend(range(token.end, token.end + len(token.raw_space_after)))
    for group in data.groups:
        covered.append(group.start_index)
        covered.extend(range(group.start_index + 1, group.start_index + 1 + len(group.raw_inner_space_before)))
        covered.append(group.end_index)
        covered.extend(range(group.end_index + 1, group.end_index + 1 + len(group.raw_space_after)))
    assert sorted(covered) == list(range(len(text)))


def test_runs_of_one_class_form_one_token() -> None:
    data = parse("汉字abc，。")
    assert _kinds(data.tokens) == [
        ("content-full", "汉字"),
        ("content-half", "abc"),
        ("punctuation-full", "，。"),
    ]


def test_bracket_pair_shares_one_mark() -> None:
    data = parse("关注(watch)你关心的仓库。")
    assert len(data.marks) == 1
    mark = data.marks[0]
    assert (mark.start_index, mark.end_index) == (2, 8)
    assert (mark.start_char, mark.end_char) == ("(", ")")

    opener, closer = data.tokens[1], data.tokens[3]
    assert opener.type is CharType.PUNCTUATION_MARK and opener.mark_side is MarkSide.LEFT
    assert closer.type is CharType.PUNCTUATION_MARK and closer.mark_side is MarkSide.RIGHT
    assert opener.mark is closer.mark is mark


def test_unmatched_brackets_stay_plain_punctuation() -> None:
    data = parse("(a]")
    assert data.marks == []
    assert [t.type for t in data.tokens] == [
        CharType.PUNCTUATION_HALF,
        CharType.CONTENT_HALF,
        CharType.PUNCTUATION_HALF,
    ]


def test_quote_pair_becomes_group_with_spacing() -> None:
    data = parse('a " b" c')
    assert len(data.groups) == 1
    group = data.tokens[1]
    assert isinstance(group, Group)
    assert (group.start_index, group.end_index) == (2, 5)
    assert group.inner_space_before == " "
    assert group.space_after == " "
    assert [t.content for t in group] == ["b"]
    assert group.parent is data.tokens
    assert group.position() == 1


def test_nested_groups_and_marks_inside_groups() -> None:
    data = parse("“外「内(x)」”")
    outer = data.tokens[0]
    inner = outer[1]
    assert isinstance(outer, Group) and isinstance(inner, Group)
    assert inner.parent is outer
    assert [g.start_char for g in data.groups] == ["“", "「"]
    assert len(data.marks) == 1
    assert inner[1].mark is inner[3].mark


def test_brackets_do_not_pair_across_group_boundaries() -> None:
    data = parse("(a“b)c”")
    assert data.marks == []
    assert len(data.groups) == 1


def test_unclosed_quote_unwinds_into_plain_tokens() -> None:
    data = parse('他说: " 你好')
    assert data.groups == []
    opener = data.tokens[2]
    assert isinstance(opener, Token)
    assert opener.content == '"'
    assert opener.type is CharType.PUNCTUATION_HALF
    assert opener.space_after == " "
    assert data.tokens[3].content == "你好"


def test_blank_line_closes_paragraph_scope() -> None:
    data = parse('"a\n\nb"')
    assert data.groups == []
    assert join(data.tokens) == '"a\n\nb"'


def test_leading_whitespace_becomes_space_token() -> None:
    data = parse("  abc")
    assert _kinds(data.tokens) == [("space", "  "), ("content-half", "abc")]
    only_space = parse(" \t")
    assert _kinds(only_space.tokens) == [("space", " \t")]


def test_ignored_span_becomes_single_opaque_token() -> None:
    text = "中`a b`文"
    spans = [IgnoredSpan(index=1, length=5, raw="`a b`", meta="inline-code", kind=CharType.CODE)]
    masked = mask_spans(text, spans)
    assert masked == "中" + PLACEHOLDER * 5 + "文"

    data = parse(masked, spans)
    assert _kinds(data.tokens) == [
        ("content-full", "中"),
        ("code", PLACEHOLDER * 5),
        ("content-full", "文"),
    ]
    assert data.tokens[1].meta == "inline-code"

    assert restore_spans(data.tokens, spans) == 1
    assert join(data.tokens) == text


def test_hyper_mark_span_keeps_its_side() -> None:
    text = "[x](y)"
    spans = [
        IgnoredSpan(index=0, length=1, raw="[", meta="link-start", kind=CharType.HYPER_MARK, side=MarkSide.LEFT),
        IgnoredSpan(index=2, length=4, raw="](y)", meta="link-end", kind=CharType.HYPER_MARK, side=MarkSide.RIGHT),
    ]
    data = parse(mask_spans(text, spans), spans)
    assert [t.mark_side for t in data.tokens] == [MarkSide.LEFT, None, MarkSide.RIGHT]
    assert data.marks == []


def test_validate_spans_sorts() -> None:
    b = IgnoredSpan(index=3, length=1, raw="d", meta="b")
    a = IgnoredSpan(index=0, length=2, raw="ab", meta="a")
    assert validate_spans("abcd", [b, a]) == [a, b]


@pytest.mark.parametrize(
    "spans",
    [
        [IgnoredSpan(index=0, length=0, raw="", meta="empty")],
        [IgnoredSpan(index=2, length=5, raw="cdefg", meta="past-end")],
        [IgnoredSpan(index=-1, length=1, raw="a", meta="negative")],
        [IgnoredSpan(index=0, length=2, raw="ab", meta="x"), IgnoredSpan(index=1, length=2, raw="bc", meta="y")],
        [IgnoredSpan(index=0, length=2, raw="abc", meta="bad-raw-length")],
    ],
)
def test_invalid_spans_raise(spans: list[IgnoredSpan]) -> None:
    with pytest.raises(SpanError):
        parse("abcd", spans)


def test_mask_rejects_span_not_matching_text() -> None:
    with pytest.raises(SpanError):
        mask_spans("abcd", [IgnoredSpan(index=0, length=2, raw="xy", meta="m")])


def test_deep_nesting_does_not_hit_recursion_limit() -> None:
    depth = 5_000
    text = "“「" * (depth // 2) + "x" + "」”" * (depth // 2)
    data = parse(text)
    assert len(data.groups) == depth
    assert join(data.tokens) == text


class _NoScanList(list):
    def __iter__(self):
        raise AssertionError("parent was scanned")


def test_group_position_uses_slot_recorded_at_parse_time() -> None:
    data = parse("a“x”b“y”c" * 50)
    placed = [(i, node) for i, node in enumerate(data.tokens) if isinstance(node, Group)]
    assert len(placed) == 100
    guarded = _NoScanList(data.tokens)
    for i, group in placed:
        assert group.slot == i
        group.parent = guarded
        assert group.position() == i


def test_unwound_frame_reslots_nested_groups() -> None:
    data = parse("“a「b」")
    group = data.tokens[2]
    assert isinstance(group, Group)
    assert group.parent is data.tokens
    assert group.slot == 2
    assert group.position() == 2


def test_hand_built_group_position_falls_back_to_scan() -> None:
    group = Group(start_index=0, start_char="“")
    parent = [Token(type=CharType.CONTENT_FULL, raw="中", content="中", index=0, length=1), group]
    group.parent = parent
    assert group.position() == 1
    assert group.slot == 1
    assert Group(start_index=0, start_char="“").position() == -1
