from __future__ import annotations

import re
from datetime import datetime, timezone
from functools import lru_cache
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

import markdown2
from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from markdownify import markdownify

from threadfed.constants import SLUR_REPLACEMENT


def utcnow(naive=True):
    if naive:
        return datetime.now(ZoneInfo('UTC')).replace(tzinfo=None)
    return datetime.now(ZoneInfo('UTC'))


# format a datetime in a way that is used in ActivityPub
def ap_datetime(date_time: datetime) -> str:
    return date_time.isoformat() + '+00:00'


def parse_ap_datetime(value: str | None) -> datetime | None:
    """Parse an ActivityPub timestamp into a naive UTC datetime, the way they are stored."""
    if not value:
        return None
    parsed = date_parser.parse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def domain_from_url(url: str) -> str:
    """Lower case host (and port, if any) of a url. Bare hostnames are returned as-is."""
    if not url:
        return ''
    if '://' not in url:
        return url.strip().strip('/').lower()
    return urlparse(url).netloc.lower()


ALLOWED_TAGS = frozenset({
    'a', 'blockquote', 'br', 'cite', 'code', 'details', 'em', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'hr', 'img', 'li',
    'ol', 'p', 'pre', 'rp', 'rt', 'ruby', 's', 'small', 'span', 'strong', 'sub', 'summary', 'sup', 'table', 'tbody',
    'td', 'tg-spoiler', 'th', 'thead', 'tr', 'ul',
})
ALLOWED_ATTRIBUTES = ('href', 'src', 'alt', 'class')

# Everything else a browser would treat as a tag. Bracketed text that isn't one of these is escaped, so
# '<Book Title>' survives as text.
OTHER_HTML_TAGS = frozenset({
    'abbr', 'acronym', 'address', 'area', 'article', 'aside', 'audio', 'b', 'bdi', 'bdo', 'big', 'body', 'button',
    'canvas', 'caption', 'center', 'col', 'colgroup', 'data', 'datalist', 'dd', 'del', 'dfn', 'dialog', 'dir', 'div',
    'dl', 'dt', 'embed', 'fieldset', 'figcaption', 'figure', 'font', 'footer', 'form', 'frame', 'frameset', 'head',
    'header', 'html', 'i', 'iframe', 'input', 'ins', 'kbd', 'label', 'legend', 'link', 'main', 'map', 'mark', 'meta',
    'meter', 'nav', 'noframes', 'noscript', 'object', 'optgroup', 'option', 'output', 'param', 'picture', 'progress',
    'q', 'samp', 'script', 'section', 'select', 'source', 'strike', 'style', 'svg', 'template', 'textarea', 'tfoot',
    'time', 'title', 'track', 'tt', 'u', 'var', 'video', 'wbr',
})
KNOWN_TAGS = ALLOWED_TAGS | OTHER_HTML_TAGS

# removed together with their contents when turning remote HTML back into Markdown
DROPPED_WITH_CONTENTS = ['script', 'style', 'iframe', 'frame', 'frameset', 'object', 'embed', 'applet', 'noscript',
                         'template', 'form', 'input', 'button', 'select', 'textarea', 'svg', 'math', 'link', 'meta',
                         'base', 'head', 'title']

UNSAFE_URL_SCHEMES = ('javascript:', 'data:', 'vbscript:')

ANGLE_BRACKETED = re.compile(r'<([^<>]+?)>')
CODE_IN_HTML = [re.compile(r'<code>[\s\S]*?</code>')]
CODE_IN_MARKDOWN = [re.compile(r'```[\s\S]*?```'), re.compile(r'`[^`\n]+`')]    # fenced first
PLACEHOLDER = '__CODE_PLACEHOLDER_{}__'

# lemmy flavoured markdown that markdown2 leaves alone, applied to the sanitised HTML outside of <code>
HTML_REWRITES = [
    # anchors with no text show their url
    (re.compile(r'<a href="(.*?)" rel="nofollow ugc" target="_blank"></a>'),
     r'<a href="\1" rel="nofollow ugc" target="_blank">\1</a>'),
    (re.compile(r':{3}\s*?spoiler\s+?(\S.+?)(?:\n|</p>)(.+?)(?:\n|<p>):{3}', re.S),
     r'<details><summary>\1</summary><p>\2</p></details>'),
    (re.compile(r'~~(.*)~~'), r'<s>\1</s>'),
    (re.compile(r'~([^~\s]+)~'), r'<sub>\1</sub>'),
    (re.compile(r'\^([^\^\s]+)\^'), r'<sup>\1</sup>'),
    # {漢字|かんじ}
    (re.compile(r'\{(.+?)\|(.+?)\}'), r'<ruby>\1<rp>(</rp><rt>\2</rt><rp>)</rp></ruby>'),
]

BOLD = re.compile(r'(\*\*)(?=\S)(.+?[*]?)(?<=\S)\1')

# bare urls become links. Not when preceded by // (already part of a url) or followed by a quote (inside href="").
BARE_URL = re.compile(
    r"""
        \b
        (
            (?:https?://|(?<!//)www\.)
            \w[\w_\-]*(?:\.\w[\w_\-]*)*
            [^<>\s"']*
            (?<![?!.,:*_~);])
            (?=[?!.,:*_~);]?(?:[<\s]|$))
        )
    """,
    re.X
)

markdown_extras = {'middle-word-em': False, 'tables': True, 'fenced-code-blocks': True, 'strike': True,
                   'tg-spoiler': True, 'link-patterns': [(BARE_URL, r'\1')],
                   'breaks': {'on_newline': True, 'on_backslash': True},
                   'tag-friendly': True}


def tag_name(bracketed: str) -> str:
    """'/a href="x"' -> 'a'"""
    words = bracketed.strip().lower().lstrip('/').split()
    return words[0] if words else ''


def hide_code(text: str, patterns: list[re.Pattern]) -> tuple[list[str], str]:
    hidden = []

    def hide(match):
        hidden.append(match.group(0))
        return PLACEHOLDER.format(len(hidden) - 1)

    for pattern in patterns:
        text = pattern.sub(hide, text)
    return hidden, text


def restore_code(hidden: list[str], text: str) -> str:
    for index, code in enumerate(hidden):
        text = text.replace(PLACEHOLDER.format(index), code)
    return text


def escape_brackets(text: str, keep: frozenset) -> str:
    """Escape <...> unless its tag name is in keep"""
    def escape(match):
        if tag_name(match.group(1)) in keep:
            return match.group(0)
        return f'&lt;{match.group(1)}&gt;'
    return ANGLE_BRACKETED.sub(escape, text)


def has_unsafe_scheme(url: str) -> bool:
    return url.strip().lower().startswith(UNSAFE_URL_SCHEMES)


def allowlist_html(html: str, a_target='_blank') -> str:
    """Sanitise HTML, keeping only ALLOWED_TAGS and ALLOWED_ATTRIBUTES. Disallowed elements lose their contents."""
    if not html:
        return ''

    soup = BeautifulSoup(escape_brackets(html, KNOWN_TAGS), 'html.parser')
    for tag in soup.find_all():
        if tag.decomposed:
            continue
        # mastodon hides the boring parts of long urls in spans with class "invisible"
        if tag.name not in ALLOWED_TAGS or (tag.name == 'span' and 'invisible' in tag.get('class', [])):
            tag.extract()
            continue
        tag.attrs = {name: value for name, value in tag.attrs.items()
                     if name in ALLOWED_ATTRIBUTES and not (name in ('href', 'src') and has_unsafe_scheme(value))}
        if tag.name == 'a':
            tag['rel'] = 'nofollow ugc'
            tag['target'] = a_target
        elif tag.name == 'img':
            tag['loading'] = 'lazy'
        elif tag.name == 'table':
            tag['class'] = 'table'

    hidden, clean_html = hide_code(str(soup), CODE_IN_HTML)
    for pattern, replacement in HTML_REWRITES:
        clean_html = pattern.sub(replacement, clean_html)
    return restore_code(hidden, clean_html)


def markdown_to_html(markdown_text, anchors_new_tab=True) -> str:
    """Markdown to sanitised HTML. Newlines are line breaks, as on lemmy."""
    if not markdown_text:
        return ''

    hidden, markdown_text = hide_code(markdown_text, CODE_IN_MARKDOWN)
    markdown_text = escape_brackets(markdown_text, ALLOWED_TAGS)
    # two bold runs in one sentence confuse markdown2
    markdown_text = restore_code(hidden, BOLD.sub(r'<strong>\2</strong>', markdown_text))

    try:
        raw_html = markdown2.markdown(markdown_text, extras=markdown_extras)
    except TypeError:
        # some odd fenced code trips up markdown2's pygments colouring, so go again without fenced-code-blocks
        extras = {key: value for key, value in markdown_extras.items() if key != 'fenced-code-blocks'}
        raw_html = markdown2.markdown(markdown_text, extras=extras)

    return allowlist_html(raw_html, a_target='_blank' if anchors_new_tab else '')


def html_to_markdown(html: str) -> str:
    """
    Best-effort conversion of remote HTML into Markdown, used when a peer sent no Markdown source.

    Scripts, styles, embeds, forms and the like are removed together with their contents rather than escaped, so
    '<script></script><b>hello</b>' becomes '**hello**'.
    """
    if not html:
        return ''
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup.find_all(DROPPED_WITH_CONTENTS):
        if not tag.decomposed:
            tag.decompose()
    for tag in soup.find_all():
        tag.attrs = {name: value for name, value in tag.attrs.items()
                     if not name.lower().startswith('on')
                     and not (name in ('href', 'src') and has_unsafe_scheme(value))}
    return markdownify(str(soup), heading_style='ATX').strip()


@lru_cache(maxsize=8)
def slur_regex(pattern: str) -> re.Pattern | None:
    if not pattern:
        return None
    return re.compile(pattern, re.IGNORECASE)


def remove_slurs(text: str, pattern: str | re.Pattern | None) -> str:
    """Replace each match of the slur pattern with *removed*. Patterns can be a string from config or compiled."""
    if not text or not pattern:
        return text
    if isinstance(pattern, str):
        pattern = slur_regex(pattern)
    return pattern.sub(SLUR_REPLACEMENT, text)


