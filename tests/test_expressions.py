from __future__ import annotations

from markpreview.expressions import (
    extract_expressions,
    make_token,
    reinject_expressions,
    INLINE_PREFIX,
)
from markpreview.models import ExpressionKind, ExpressionRecord


def _records(text: str) -> list[ExpressionRecord]:
    _, table = extract_expressions(text)
    return list(table.values())


def test_text_without_dollars_is_unchanged() -> None:
    text = "# Title\n\nPlain *markdown* with no math."
    rewritten, table = extract_expressions(text)

    assert rewritten == text
    assert table == {}


def test_extracts_inline_expression() -> None:
    rewritten, table = extract_expressions("The equation $E = mc^2$ is famous.")

    assert rewritten == "The equation MATH_INLINE_PLACEHOLDER_0_END is famous."
    assert table == {
        "MATH_INLINE_PLACEHOLDER_0_END": ExpressionRecord(ExpressionKind.INLINE, "E = mc^2"),
    }


def test_display_expressions_are_numbered_before_inline() -> None:
    rewritten, table = extract_expressions("Inline $a$ and display $$b$$ math.")

    assert list(table) == ["MATH_DISPLAY_PLACEHOLDER_0_END", "MATH_INLINE_PLACEHOLDER_1_END"]
    assert table["MATH_DISPLAY_PLACEHOLDER_0_END"] == ExpressionRecord(ExpressionKind.DISPLAY, "b")
    assert table["MATH_INLINE_PLACEHOLDER_1_END"] == ExpressionRecord(ExpressionKind.INLINE, "a")
    assert "$" not in rewritten


def test_display_expression_spans_lines_and_is_trimmed() -> None:
    text = "$$\n\\begin{bmatrix}\na & b \\\\\nc & d\n\\end{bmatrix}\n$$"
    records = _records(text)

    assert len(records) == 1
    assert records[0].kind is ExpressionKind.DISPLAY
    assert records[0].content.startswith("\\begin{bmatrix}")
    assert records[0].content.endswith("\\end{bmatrix}")


def test_escaped_dollar_is_never_a_delimiter() -> None:
    assert _records("Price is \\$50") == []
    assert _records("costs \\$5 and \\$10 today") == []


def test_inline_requires_non_space_start() -> None:
    assert _records("between $ 5 and 10$ dollars") == []


def test_inline_does_not_cross_lines() -> None:
    assert _records("first $a\nsecond b$") == []


def test_unbalanced_inline_keeps_trailing_text_literal() -> None:
    rewritten, table = extract_expressions("$a$b$")

    assert [record.content for record in table.values()] == ["a"]
    assert rewritten == "MATH_INLINE_PLACEHOLDER_0_ENDb$"


def test_empty_display_expression_is_recorded() -> None:
    records = _records("$$$$")

    assert records == [ExpressionRecord(ExpressionKind.DISPLAY, "")]


def test_lone_dollar_in_fence_is_literal() -> None:
    rewritten, table = extract_expressions("```typescript\nreturn `$`;\n```")

    assert table == {}
    assert rewritten == "```typescript\nreturn `$`;\n```"


def test_fenced_code_is_never_scanned_for_math() -> None:
    text = "```bash\necho $HOME $PATH\n```\n\nCosts $5.00$ today."
    rewritten, table = extract_expressions(text)

    assert [record.content for record in table.values()] == ["5.00"]
    assert "echo $HOME $PATH" in rewritten


def test_display_math_cannot_reach_into_a_fence() -> None:
    text = "Start $$a\n\n```\n$$ inside\n```"
    assert _records(text) == []


def test_indented_code_block_is_protected() -> None:
    assert _records("    total = $a$ + $b$\n") == []


def test_fence_inside_list_item_is_protected() -> None:
    text = "- item $x$\n\n  ```\n  $y$\n  ```\n"
    assert [record.content for record in _records(text)] == ["x"]


def test_reinject_replaces_token_with_container() -> None:
    table = {"MATH_INLINE_PLACEHOLDER_0_END": ExpressionRecord(ExpressionKind.INLINE, "a+b")}

    html = reinject_expressions("<p>MATH_INLINE_PLACEHOLDER_0_END</p>", table)

    assert html == '<p><span class="math-inline" data-math="a%2Bb"></span></p>'


def test_reinject_percent_encodes_like_uri_components() -> None:
    table = {"MATH_DISPLAY_PLACEHOLDER_0_END": ExpressionRecord(ExpressionKind.DISPLAY, "\\frac{a}{b} (x)")}

    html = reinject_expressions("MATH_DISPLAY_PLACEHOLDER_0_END", table)

    assert html == '<span class="math-display" data-math="%5Cfrac%7Ba%7D%7Bb%7D%20(x)"></span>'


def test_reinject_handles_more_than_ten_tokens() -> None:
    text = " ".join(f"${index}x$" for index in range(12))
    rewritten, table = extract_expressions(text)

    html = reinject_expressions(rewritten, table)

    assert html.count('class="math-inline"') == 12
    assert 'data-math="10x"' in html
    assert make_token(INLINE_PREFIX, 1) not in html
    assert "PLACEHOLDER" not in html


def test_inline_code_spans_are_never_scanned_for_math() -> None:
    text = "Use `$PATH` and `$HOME` in shell."
    rewritten, table = extract_expressions(text)

    assert table == {}
    assert rewritten == text


def test_code_span_closes_only_on_equal_backtick_run() -> None:
    rewritten, table = extract_expressions("``a $b$ ` c`` then $d$")

    assert [record.content for record in table.values()] == ["d"]
    assert rewritten.startswith("``a $b$ ` c`` then ")


def test_unclosed_backtick_does_not_hide_math() -> None:
    assert [record.content for record in _records("a ` b $c$")] == ["c"]


def test_code_span_inside_display_math_is_restored() -> None:
    assert _records("$$a `x` b$$") == [ExpressionRecord(ExpressionKind.DISPLAY, "a `x` b")]


def test_reinject_inside_tag_restores_literal_source() -> None:
    table = {"MATH_INLINE_PLACEHOLDER_0_END": ExpressionRecord(ExpressionKind.INLINE, "1&b=")}
    html = (
        '<p><a href="https://x.com/?a=MATH_INLINE_PLACEHOLDER_0_END2">'
        "MATH_INLINE_PLACEHOLDER_0_END</a></p>"
    )

    assert reinject_expressions(html, table) == (
        '<p><a href="https://x.com/?a=$1&amp;b=$2">'
        '<span class="math-inline" data-math="1%26b%3D"></span></a></p>'
    )
