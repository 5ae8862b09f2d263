import pytest

from threadfed.utils import allowlist_html, markdown_to_html

LINK_ATTRS = 'rel="nofollow ugc" target="_blank"'


@pytest.mark.parametrize('html, expected', [
    ('<p>Basic paragraph</p>', '<p>Basic paragraph</p>'),
    ('<blockquote><p>Nested content</p></blockquote>', '<blockquote><p>Nested content</p></blockquote>'),
    ("<p>Paragraph with <script>alert('xss')</script> script</p>", '<p>Paragraph with  script</p>'),
    ('<a href="https://example.com" onclick="alert(\'xss\')" style="color:red">Link</a>',
     f'<a href="https://example.com" {LINK_ATTRS}>Link</a>'),
    ('<p>before</p><iframe src="https://evil.example"></iframe><style>p {display:none}</style><p>after</p>',
     '<p>before</p><p>after</p>'),
    ('<a href="https://example.com"></a>', f'<a href="https://example.com" {LINK_ATTRS}>https://example.com</a>'),
    ('', ''),
    (None, ''),
])
def test_sanitised(html, expected):
    assert allowlist_html(html) == expected


def test_unsafe_urls_are_dropped():
    html = allowlist_html('<a href="javascript:alert(1)">Link</a><img src="data:image/svg+xml;base64,AAAA" alt="x"/>')
    assert 'javascript:' not in html
    assert 'data:' not in html


def test_images():
    html = allowlist_html('<img src="cat.jpg" alt="Cat" onclick="alert(\'xss\')" style="border:1px"/>')
    for wanted in ('src="cat.jpg"', 'alt="Cat"', 'loading="lazy"'):
        assert wanted in html
    assert 'onclick' not in html
    assert 'style' not in html


def test_mastodon_link_shortening():
    html = allowlist_html('<p><a href="https://example.com/a/long/path"><span class="invisible">https://</span>'
                          '<span class="ellipsis">example.com/a/long</span><span class="invisible">/path</span></a></p>')
    assert 'invisible' not in html
    assert 'example.com/a/long</span>' in html


def test_bare_urls_become_links():
    html = allowlist_html(markdown_to_html('Visit https://example.com for more info.'))
    assert f'<a href="https://example.com" {LINK_ATTRS}>https://example.com</a>' in html


@pytest.mark.parametrize('html', [
    '<p>Text with <Book Title and Volume> needs escaping</p>',
    '<blockquote><p><Book Title and Volume> Review Goes Here [5/10]</p></blockquote>',
])
def test_text_in_angle_brackets(html):
    assert '&lt;Book Title and Volume&gt;' in allowlist_html(html)


def test_spoiler():
    assert '<details><summary>Ending</summary>' in allowlist_html('<p>::: spoiler Ending\nThey all live\n:::</p>')


def test_strikethrough_skips_code():
    html = allowlist_html('<p>~~gone~~ <code>~~kept~~</code></p>')
    assert '<s>gone</s>' in html
    assert '<code>~~kept~~</code>' in html
