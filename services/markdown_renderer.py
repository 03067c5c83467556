"""
Markdown rendering for articles, the editor preview and email.

Posts are written in a small markdown dialect and displayed in three places:
the public article page, the live preview next to the editor and the body of
newsletter emails. All three share one renderer; what differs is the
presentation, captured by a ``RenderTheme`` per ``DisplayVariant`` holding the
element templates with their inline styles.

The renderer is a fixed sequence of substitutions. The order matters because
later rules must not corrupt the output of earlier ones:

1. fenced code blocks (escaped and set aside until the end)
2. ATX headers, ``###`` before ``##`` before ``#``
3. ``***bold italic***``, then ``**bold**``, then ``*italic*``
4. images, then links, since image syntax contains link syntax
5. inline code spans
6. blockquote lines (``> ``)
7. list item lines (``- ``)
8. horizontal rules (a line that is exactly ``---``)
9. paragraphs: blank-line separated blocks not already starting with a block
   element are wrapped, single newlines become ``<br />``

List items are emitted as bare ``<li>`` elements without an enclosing list,
which browsers and mail clients render acceptably. A theme may set
``list_container`` to group consecutive items instead.

Rendering never raises: unknown or malformed syntax is passed through as text.
"""

import html
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Union


class DisplayVariant(str, Enum):
    """Named rendering targets."""

    ARTICLE = 'article'
    PREVIEW = 'preview'
    EMAIL = 'email'


@dataclass(frozen=True)
class RenderTheme:
    """
    Element templates for one display variant.

    Each template is a ``str.format`` pattern. Placeholders: ``{code}`` and
    ``{language}`` for code blocks, ``{text}`` for headers, emphasis,
    blockquotes, list items and paragraphs, ``{alt}`` and ``{src}`` for
    images, ``{text}`` and ``{href}`` for links, ``{code}`` for inline code
    and ``{items}`` for the optional list container.
    """

    code_block: str
    h1: str
    h2: str
    h3: str
    strong_em: str
    strong: str
    em: str
    image: str
    link: str
    inline_code: str
    blockquote: str
    list_item: str
    hr: str
    paragraph: str
    list_container: Optional[str] = None


ARTICLE_THEME = RenderTheme(
    code_block=('<pre style="background:#1f2937;color:#f3f4f6;padding:20px;border-radius:12px;'
                'overflow-x:auto;margin:24px 0;font-size:14px;line-height:1.6"><code>{code}</code></pre>'),
    h1='<h1 style="font-size:34px;font-weight:700;color:#000;margin:40px 0 20px;line-height:1.3">{text}</h1>',
    h2='<h2 style="font-size:28px;font-weight:700;color:#000;margin:40px 0 20px;line-height:1.3">{text}</h2>',
    h3='<h3 style="font-size:22px;font-weight:600;color:#000;margin:32px 0 16px;line-height:1.3">{text}</h3>',
    strong_em='<strong><em>{text}</em></strong>',
    strong='<strong>{text}</strong>',
    em='<em>{text}</em>',
    image=('<figure style="margin:32px 0"><img src="{src}" alt="{alt}" style="width:100%;border-radius:12px;'
           'box-shadow:0 4px 12px rgba(0,0,0,0.1)" /><figcaption style="text-align:center;font-size:14px;'
           'color:#555;margin-top:12px">{alt}</figcaption></figure>'),
    link=('<a href="{href}" style="color:#2563eb;text-decoration:underline;text-underline-offset:2px" '
          'target="_blank" rel="noopener">{text}</a>'),
    inline_code=('<code style="background:#f3f4f6;color:#e11d48;padding:3px 8px;border-radius:6px;'
                 'font-size:14px;font-family:monospace">{code}</code>'),
    blockquote=('<blockquote style="border-left:4px solid #000;padding:16px 24px;margin:24px 0;'
                'background:#f9fafb;border-radius:0 12px 12px 0;font-style:italic;color:#000;'
                'font-size:18px">{text}</blockquote>'),
    list_item='<li style="margin-left:24px;margin-bottom:12px;line-height:1.7;color:#000">{text}</li>',
    hr='<hr style="border:none;border-top:2px solid #e5e7eb;margin:40px 0" />',
    paragraph='<p style="color:#000;line-height:1.9;margin-bottom:24px;font-size:18px">{text}</p>',
)

PREVIEW_THEME = RenderTheme(
    code_block=('<pre style="background:#1f2937;color:#f3f4f6;padding:16px;border-radius:8px;'
                'overflow-x:auto;margin:16px 0"><code>{code}</code></pre>'),
    h1='<h1 style="font-size:30px;font-weight:700;margin:32px 0 16px;color:#000">{text}</h1>',
    h2='<h2 style="font-size:24px;font-weight:700;margin:32px 0 16px;color:#000">{text}</h2>',
    h3='<h3 style="font-size:20px;font-weight:600;margin:24px 0 12px;color:#000">{text}</h3>',
    strong_em='<strong><em>{text}</em></strong>',
    strong='<strong>{text}</strong>',
    em='<em>{text}</em>',
    image='<img src="{src}" alt="{alt}" style="max-width:100%;border-radius:8px;margin:16px 0" />',
    link='<a href="{href}" style="color:#2563eb;text-decoration:underline">{text}</a>',
    inline_code=('<code style="background:#f3f4f6;padding:2px 6px;border-radius:4px;font-size:14px;'
                 'color:#000">{code}</code>'),
    blockquote=('<blockquote style="border-left:4px solid #000;padding-left:16px;margin:16px 0;'
                'color:#000;font-style:italic">{text}</blockquote>'),
    list_item='<li style="margin-left:20px;margin-bottom:8px;color:#000">{text}</li>',
    hr='<hr style="border:none;border-top:1px solid #e5e7eb;margin:24px 0" />',
    paragraph='<p style="margin-bottom:16px;line-height:1.7;color:#000">{text}</p>',
)

EMAIL_THEME = RenderTheme(
    code_block=('<div style="background:#1e293b;border-radius:8px;padding:20px;margin:24px 0;overflow-x:auto;">'
                '<pre style="margin:0;color:#e2e8f0;font-family:\'Consolas\',\'Monaco\',monospace;font-size:14px;'
                'line-height:1.6;white-space:pre-wrap;">{code}</pre></div>'),
    h1='<h1 style="font-size:28px;font-weight:800;color:#18181b;margin:40px 0 20px;line-height:1.2;">{text}</h1>',
    h2='<h2 style="font-size:24px;font-weight:700;color:#18181b;margin:36px 0 18px;line-height:1.3;">{text}</h2>',
    h3='<h3 style="font-size:20px;font-weight:700;color:#18181b;margin:32px 0 16px;line-height:1.4;">{text}</h3>',
    strong_em='<strong style="font-weight:700;"><em>{text}</em></strong>',
    strong='<strong style="font-weight:700;">{text}</strong>',
    em='<em style="font-style:italic;">{text}</em>',
    image=('<img src="{src}" alt="{alt}" style="max-width:100%;height:auto;border-radius:12px;'
           'margin:24px 0;display:block;" />'),
    link='<a href="{href}" style="color:#2563eb;text-decoration:underline;font-weight:500;">{text}</a>',
    inline_code=('<code style="background:#f1f5f9;color:#0f172a;padding:3px 8px;border-radius:4px;'
                 'font-family:\'Consolas\',monospace;font-size:14px;">{code}</code>'),
    blockquote=('<blockquote style="border-left:4px solid #3b82f6;background:#eff6ff;padding:16px 20px;'
                'margin:24px 0;border-radius:0 8px 8px 0;"><p style="margin:0;color:#1e40af;'
                'font-style:italic;line-height:1.7;">{text}</p></blockquote>'),
    list_item=('<li style="margin-left:24px;margin-bottom:10px;color:#374151;line-height:1.7;'
               'padding-left:8px;">{text}</li>'),
    hr='<hr style="border:none;border-top:2px solid #e5e7eb;margin:32px 0;" />',
    paragraph='<p style="margin:0 0 20px;color:#374151;font-size:16px;line-height:1.8;">{text}</p>',
)

THEMES: Dict[DisplayVariant, RenderTheme] = {
    DisplayVariant.ARTICLE: ARTICLE_THEME,
    DisplayVariant.PREVIEW: PREVIEW_THEME,
    DisplayVariant.EMAIL: EMAIL_THEME,
}

CODE_BLOCK_RE = re.compile(r'```(\w+)?\n([\s\S]*?)```')
H3_RE = re.compile(r'^### (.*)$', re.MULTILINE)
H2_RE = re.compile(r'^## (.*)$', re.MULTILINE)
H1_RE = re.compile(r'^# (.*)$', re.MULTILINE)
STRONG_EM_RE = re.compile(r'\*\*\*(.*?)\*\*\*')
STRONG_RE = re.compile(r'\*\*(.*?)\*\*')
EM_RE = re.compile(r'\*(.*?)\*')
IMAGE_RE = re.compile(r'!\[(.*?)\]\((.*?)\)')
LINK_RE = re.compile(r'\[(.*?)\]\((.*?)\)')
INLINE_CODE_RE = re.compile(r'`([^`]+)`')
BLOCKQUOTE_RE = re.compile(r'^> (.*)$', re.MULTILINE)
LIST_ITEM_RE = re.compile(r'^- (.*)$', re.MULTILINE)
HR_RE = re.compile(r'^---$', re.MULTILINE)
BLOCK_SPLIT_RE = re.compile(r'\n[ \t]*\n\s*')

# Rendered blocks that must not be wrapped in a paragraph
BLOCK_PREFIXES = ('<h', '<pre', '<div', '<blockquote', '<figure', '<img', '<li', '<ul', '<hr')

CODE_PREFIX = '\x00CODEBLOCK'
PLACEHOLDER = CODE_PREFIX + '{index}\x00'


def get_theme(variant: Union[DisplayVariant, str]) -> RenderTheme:
    """
    Look up the theme for ``variant``.

    Raises:
        ValueError: If the variant name is unknown
    """
    return THEMES[DisplayVariant(variant)]


def with_list_container(theme: RenderTheme, container: str = '<ul style="margin:16px 0;padding:0">{items}</ul>'
                        ) -> RenderTheme:
    """Copy of ``theme`` that groups consecutive list items in ``container``."""
    return replace(theme, list_container=container)


def render_markdown(markdown: Optional[str], variant: Union[DisplayVariant, str, RenderTheme] = DisplayVariant.ARTICLE
                    ) -> str:
    """
    Render ``markdown`` to HTML styled for ``variant``.

    Args:
        markdown: Markdown source; None or blank input renders to ``""``
        variant: A ``DisplayVariant`` (or its name) or an explicit ``RenderTheme``

    Returns:
        str: HTML fragment
    """
    if not markdown or not markdown.strip():
        return ''

    theme = variant if isinstance(variant, RenderTheme) else get_theme(variant)
    text = markdown.replace('\r\n', '\n')

    code_blocks: List[str] = []

    def _stash_code(match):
        code_blocks.append(theme.code_block.format(
            code=html.escape(match.group(2), quote=False),
            language=match.group(1) or ''
        ))
        return PLACEHOLDER.format(index=len(code_blocks) - 1)

    text = CODE_BLOCK_RE.sub(_stash_code, text)

    text = H3_RE.sub(lambda m: theme.h3.format(text=m.group(1)), text)
    text = H2_RE.sub(lambda m: theme.h2.format(text=m.group(1)), text)
    text = H1_RE.sub(lambda m: theme.h1.format(text=m.group(1)), text)

    text = STRONG_EM_RE.sub(lambda m: theme.strong_em.format(text=m.group(1)), text)
    text = STRONG_RE.sub(lambda m: theme.strong.format(text=m.group(1)), text)
    text = EM_RE.sub(lambda m: theme.em.format(text=m.group(1)), text)

    text = IMAGE_RE.sub(lambda m: theme.image.format(alt=m.group(1), src=m.group(2)), text)
    text = LINK_RE.sub(lambda m: theme.link.format(text=m.group(1), href=m.group(2)), text)

    text = INLINE_CODE_RE.sub(lambda m: theme.inline_code.format(code=m.group(1)), text)

    text = BLOCKQUOTE_RE.sub(lambda m: theme.blockquote.format(text=m.group(1)), text)
    text = LIST_ITEM_RE.sub(lambda m: theme.list_item.format(text=m.group(1)), text)
    text = HR_RE.sub(theme.hr, text)

    rendered = []
    for block in BLOCK_SPLIT_RE.split(text):
        if not block.strip():
            continue
        if block.startswith(BLOCK_PREFIXES) or block.lstrip().startswith(CODE_PREFIX):
            if theme.list_container and block.startswith('<li'):
                block = theme.list_container.format(items=block.replace('\n', ''))
            rendered.append(block)
        else:
            rendered.append(theme.paragraph.format(text=block.replace('\n', '<br />')))

    result = ''.join(rendered)
    for index, code_html in enumerate(code_blocks):
        result = result.replace(PLACEHOLDER.format(index=index), code_html)
    return result


def markdown_to_plain_text(markdown: Optional[str]) -> str:
    """
    Strip markdown syntax, producing the plain-text part of an email.

    Code blocks become ``[Code Block]`` and images ``[Image]``; links keep
    their text followed by the URL in parentheses; emphasis and code markers
    and header hashes are removed; quotes and list items get typographic
    markers.
    """
    if not markdown:
        return ''

    text = markdown.replace('\r\n', '\n')
    text = re.sub(r'```[\s\S]*?```', '[Code Block]', text)
    text = re.sub(r'!\[.*?\]\(.*?\)', '[Image]', text)
    text = re.sub(r'\*\*(.*?)\*\*', r'\1', text)
    text = re.sub(r'\*(.*?)\*', r'\1', text)
    text = re.sub(r'\[(.*?)\]\((.*?)\)', r'\1 (\2)', text)
    text = re.sub(r'`(.*?)`', r'\1', text)
    text = re.sub(r'^#+\s', '', text, flags=re.MULTILINE)
    text = re.sub(r'^>\s', '» ', text, flags=re.MULTILINE)
    text = re.sub(r'^-\s', '• ', text, flags=re.MULTILINE)
    return text
