from __future__ import annotations

import pytest

from markpreview.sanitize import sanitize_html


def test_script_element_is_removed_with_its_content() -> None:
    html = sanitize_html("<p>hi</p><script>alert(1)</script>")

    assert "<script" not in html
    assert "alert(1)" not in html
    assert "<p>hi</p>" in html


def test_script_nested_in_allowed_container_is_removed() -> None:
    html = sanitize_html(
        '<div><span class="math-inline" data-math="x"><script>alert(1)</script></span></div>'
    )

    assert "<script" not in html
    assert "alert(1)" not in html
    assert '<span class="math-inline" data-math="x"></span>' in html


def test_event_handler_attributes_are_stripped() -> None:
    html = sanitize_html('<p onclick="steal()">x<img src="a.png" onerror="alert(1)"></p>')

    assert "onerror" not in html
    assert "onclick" not in html
    assert '<img src="a.png">' in html


def test_javascript_urls_are_dropped() -> None:
    html = sanitize_html('<a href="javascript:alert(1)">click</a><img src="javascript:alert(2)">')

    assert "javascript" not in html
    assert "click" in html


def test_safe_links_survive() -> None:
    html = sanitize_html('<a href="https://example.com" title="Example">site</a>')

    assert html == '<a href="https://example.com" title="Example">site</a>'


def test_math_containers_and_search_marks_survive() -> None:
    source = (
        '<p><span class="math-display" data-math="x%5E2"></span> '
        '<mark class="search-highlight search-highlight-active" id="search-highlight-active">hit</mark></p>'
    )

    assert sanitize_html(source) == source


def test_highlighted_code_spans_survive() -> None:
    source = '<pre><code class="hljs language-python"><span class="n">x</span> <span class="o">=</span> <span class="mi">1</span>\n</code></pre>'

    assert sanitize_html(source) == source


def test_unknown_elements_are_unwrapped() -> None:
    html = sanitize_html("<p><blink>text</blink></p>")

    assert html == "<p>text</p>"


def test_iframes_and_styles_are_removed() -> None:
    html = sanitize_html('<style>p{}</style><iframe src="https://evil.example"></iframe><p>ok</p>')

    assert html == "<p>ok</p>"


def test_empty_input() -> None:
    assert sanitize_html("") == ""


@pytest.mark.parametrize(
    "source",
    [
        "<p>hi</p><script>alert(1)</script>",
        '<p onclick="x()">a &amp; b &lt;c&gt; "quoted"</p>',
        "<ul><li>one<li>two</ul><!-- comment -->",
        '<pre><code class="language-js">if (a &lt; b) {}\n</code></pre>',
        '<p><img src="x.png" alt="x" onerror="alert(1)"><br>next</p>',
        "<div><p>unclosed <em>tags</div>",
        '<input class="task-list-item-checkbox" checked="checked" disabled="disabled" type="checkbox"> done',
    ],
)
def test_sanitize_is_idempotent(source: str) -> None:
    once = sanitize_html(source)

    assert sanitize_html(once) == once
