import pytest

from threadfed.utils import markdown_to_html


@pytest.mark.parametrize('markdown, html', [
    ('**Bold** and *italic* text', '<p><strong>Bold</strong> and <em>italic</em> text</p>\n'),
    ('[Link text](https://example.com)',
     '<p><a href="https://example.com" rel="nofollow ugc" target="_blank">Link text</a></p>\n'),
    ('Normal text `code block > something else` normal text again',
     '<p>Normal text <code>code block &gt; something else</code> normal text again</p>\n'),
    ('Two **bold** words in one **bold** sentence.',
     '<p>Two <strong>bold</strong> words in one <strong>bold</strong> sentence.</p>\n'),
    ('Ignore `**bold**` words in code block with **bold** markdown.',
     '<p>Ignore <code>**bold**</code> words in code block with <strong>bold</strong> markdown.</p>\n'),
])
def test_exact_output(markdown, html):
    assert markdown_to_html(markdown) == html


@pytest.mark.parametrize('markdown, fragments', [
    ('First paragraph\n\nSecond paragraph', ['<p>First paragraph</p>', '<p>Second paragraph</p>']),
    ('```\ncode block\n```', ['<pre><code>code block']),
    ('> This is a quote', ['<blockquote>', '<p>This is a quote</p>']),
    ('* Item 1\n* Item 2\n\n1. First\n2. Second', ['<ul>', '<li>Item 2</li>', '<ol>', '<li>First</li>']),
    ('Text with <tags> should be escaped', ['&lt;tags&gt;']),
    ('> <Book Title and Volume> Review Goes Here [5/10]', ['&lt;Book Title and Volume&gt;']),
    ("`don't ~~strikethrough~~`", ['~~strikethrough~~']),
])
def test_contains(markdown, fragments):
    html = markdown_to_html(markdown)
    for fragment in fragments:
        assert fragment in html


def test_links_in_same_tab():
    assert '_blank' not in markdown_to_html('[Link text](https://example.com)', anchors_new_tab=False)


def test_script_stays_text():
    html = markdown_to_html("Paragraph with <script>alert('xss')</script> script.")
    assert '<script' not in html
    assert '&lt;script&gt;' in html


def test_javascript_link():
    assert 'javascript:' not in markdown_to_html('[click me](javascript:alert)')


def test_no_strikethrough_in_code():
    assert '<s>' not in markdown_to_html("`don't ~~strikethrough~~`")


def test_empty():
    assert markdown_to_html('') == ''
    assert markdown_to_html(None) == ''


def test_same_input_same_output():
    markdown = 'Some **text** with a [link](https://example.com) and\n\n> a quote'
    assert markdown_to_html(markdown) == markdown_to_html(markdown)
