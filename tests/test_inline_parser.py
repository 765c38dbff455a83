from MarkDocs.inline_parser import parse_inline, plain_text
from MarkDocs.model import LinkSegment, Style, TextSegment


def _styles(run):
    return [(segment.text, set(segment.styles)) for segment in run]


def test_toggle_parity_returns_to_plain():
    run = parse_inline("**bold** plain **bold again**")
    assert _styles(run) == [
        ("bold", {Style.BOLD}),
        (" plain ", set()),
        ("bold again", {Style.BOLD}),
    ]


def test_overlapping_italic_and_bold():
    run = parse_inline("*italic **bolditalic** still italic*")
    assert _styles(run) == [
        ("italic ", {Style.ITALIC}),
        ("bolditalic", {Style.ITALIC, Style.BOLD}),
        (" still italic", {Style.ITALIC}),
    ]


def test_bold_italic_marker_sets_and_clears_both():
    run = parse_inline("___both___ after")
    assert _styles(run) == [("both", {Style.BOLD, Style.ITALIC}), (" after", set())]


def test_strike_and_code_toggles():
    run = parse_inline("~~gone~~ and `code`")
    assert _styles(run) == [
        ("gone", {Style.STRIKE}),
        (" and ", set()),
        ("code", {Style.CODE}),
    ]


def test_unbalanced_marker_stays_on():
    run = parse_inline("start **never closed")
    assert _styles(run) == [("start ", set()), ("never closed", {Style.BOLD})]


def test_escaped_asterisk_is_literal():
    run = parse_inline(r"2 \* 3")
    assert run == [TextSegment(text=r"2 \* 3")]


def test_links_are_extracted_before_styles():
    run = parse_inline("see [the docs](https://example.com/a) and **more**")
    assert run[0] == TextSegment(text="see ")
    assert run[1] == LinkSegment(text="the docs", url="https://example.com/a")
    assert _styles(run[2:]) == [(" and ", set()), ("more", {Style.BOLD})]


def test_style_state_does_not_cross_links():
    run = parse_inline("*open [link](u) after")
    assert _styles(run) == [("open ", {Style.ITALIC}), ("link", set()), (" after", set())]


def test_empty_and_plain_text():
    assert parse_inline("") == []
    assert plain_text(parse_inline("a **b** [c](d)")) == "a b c"
