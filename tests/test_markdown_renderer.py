"""
Tests for the markdown renderer and the plain-text email fallback.
"""

import pytest

from services.markdown_renderer import (
    ARTICLE_THEME, EMAIL_THEME, PREVIEW_THEME, DisplayVariant,
    markdown_to_plain_text, render_markdown, with_list_container
)


class TestRenderMarkdown:
    """Rendering of each supported construct."""

    @pytest.mark.parametrize('source', [None, '', '   \n\n  '])
    def test_empty_input_renders_nothing(self, source) -> None:
        assert render_markdown(source) == ''

    def test_header_is_not_wrapped_in_paragraph(self) -> None:
        html = render_markdown('# Title', DisplayVariant.ARTICLE)
        assert html == ARTICLE_THEME.h1.format(text='Title')

    def test_headers_match_most_specific_first(self) -> None:
        html = render_markdown('### Small\n\n## Medium', 'preview')
        assert PREVIEW_THEME.h3.format(text='Small') in html
        assert PREVIEW_THEME.h2.format(text='Medium') in html
        assert '<h1' not in html

    def test_emphasis(self) -> None:
        html = render_markdown('***both*** then **bold** and *italic*', 'preview')
        assert '<strong><em>both</em></strong>' in html
        assert '<strong>bold</strong>' in html
        assert '<em>italic</em>' in html
        assert html.startswith('<p ')

    def test_image_is_not_rendered_as_link(self) -> None:
        html = render_markdown('![A cat](https://img.example.com/cat.png)', 'preview')
        assert '<img src="https://img.example.com/cat.png" alt="A cat"' in html
        assert '<a ' not in html

    def test_link(self) -> None:
        html = render_markdown('See [the docs](https://example.com/docs)', 'email')
        assert EMAIL_THEME.link.format(text='the docs', href='https://example.com/docs') in html

    def test_inline_code(self) -> None:
        html = render_markdown('Run `make test` now', 'preview')
        assert PREVIEW_THEME.inline_code.format(code='make test') in html

    def test_fenced_code_is_escaped_and_untouched(self) -> None:
        source = '```python\nvalue = "<b>" * 2 * 3\n```'
        html = render_markdown(source, 'preview')
        assert '&lt;b&gt;' in html
        assert '<b>' not in html
        assert '<em>' not in html
        assert html.startswith('<pre')

    def test_fenced_code_followed_by_text_is_not_wrapped(self) -> None:
        html = render_markdown('```\ncode\n```\nafter', 'article')
        assert html.startswith('<pre')
        assert not html.startswith('<p ')
        assert '<br />' not in html
        assert 'after' in html

    def test_rendering_rendered_headers_is_stable(self) -> None:
        once = render_markdown('# Title')
        assert render_markdown(once) == once

    def test_blockquote(self) -> None:
        html = render_markdown('> Worth quoting', 'email')
        assert EMAIL_THEME.blockquote.format(text='Worth quoting') in html

    def test_list_items_are_bare_by_default(self) -> None:
        html = render_markdown('- one\n- two', 'preview')
        assert PREVIEW_THEME.list_item.format(text='one') in html
        assert PREVIEW_THEME.list_item.format(text='two') in html
        assert '<ul' not in html

    def test_list_container_groups_items(self) -> None:
        theme = with_list_container(PREVIEW_THEME)
        html = render_markdown('- one\n- two', theme)
        assert html.startswith('<ul')
        assert html.count('<li') == 2

    def test_horizontal_rule(self) -> None:
        html = render_markdown('before\n\n---\n\nafter', 'article')
        assert ARTICLE_THEME.hr in html
        assert html.count('<p ') == 2

    def test_paragraphs_and_line_breaks(self) -> None:
        html = render_markdown('line one\nline two\n\nsecond paragraph', 'preview')
        assert html.count('<p ') == 2
        assert 'line one<br />line two' in html

    def test_variants_differ_in_styling_only(self) -> None:
        article = render_markdown('**hi**', 'article')
        email = render_markdown('**hi**', 'email')
        assert '<strong>hi</strong>' in article
        assert '<strong style="font-weight:700;">hi</strong>' in email

    def test_unknown_variant(self) -> None:
        with pytest.raises(ValueError):
            render_markdown('text', 'fancy')


class TestPlainText:
    """Plain-text part of newsletter emails."""

    def test_empty(self) -> None:
        assert markdown_to_plain_text(None) == ''

    def test_links_keep_their_url(self) -> None:
        assert markdown_to_plain_text('**Bold** and [link](https://x.com)') == 'Bold and link (https://x.com)'

    def test_images_and_code_blocks_are_replaced(self) -> None:
        text = markdown_to_plain_text('![pic](a.png)\n\n```\ncode\n```')
        assert text == '[Image]\n\n[Code Block]'

    def test_block_markers(self) -> None:
        text = markdown_to_plain_text('# Title\n> quote\n- item\n`code`')
        assert text == 'Title\n» quote\n• item\ncode'
