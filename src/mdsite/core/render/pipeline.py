"""Markdown to HTML renderer: an explicit, ordered chain of named transform stages

Stage order is load-bearing:

  protect-code       fenced code and {{htmlcode}} samples leave the text; @@CODEBLOCK<n>@@ tokens remain
  protect-scripts    <script>/<style> elements leave the text; __SCRIPT_BLOCK_<n>__ tokens remain
  images             before links, both use bracket syntax
  links
  lists              line scanner, unwinds on every non-list line
  definition-lists   never treats list/table/quote/token lines as terms
  tables
  task-items         needs the <li> markup produced by lists
  abbreviations      definitions collected and removed before the global rewrite
  footnotes          definitions collected before references are numbered
  restore-scripts    from here on, stages only see text outside <script>/<style>
  headers
  emphasis
  blockquotes
  rules
  paragraphs         code tokens are never wrapped
  restore-code       escaped code containers replace the tokens last
"""

import html
import logging
from collections.abc import Container
from dataclasses import dataclass, field
from typing import Callable

from mdsite.core.render import assemble, blocks, inline
from mdsite.core.render.vault import SCRIPT_RE, PlaceholderVault, code_vault, script_vault


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderOptions:
    """Feature flags for one renderer; webp_index is read-only during rendering."""
    optimized_images: bool = True
    external_links: bool = True
    webp_index: Container[str] = frozenset()


@dataclass
class RenderState:
    """Per-document scratch state shared by the stages of one render call."""
    code: PlaceholderVault = field(default_factory=code_vault)
    scripts: PlaceholderVault = field(default_factory=script_vault)
    footnotes: dict[str, str] = field(default_factory=dict)
    footnote_numbers: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Stage:
    """A named transform; raw_safe stages skip <script>/<style> elements."""
    name: str
    apply: Callable[[str, RenderState], str]
    raw_safe: bool = False


def outside_raw(text: str, fn: Callable[[str], str]) -> str:
    """Apply fn to the text between <script>/<style> elements, leaving the elements untouched."""
    parts, pos = [], 0
    for m in SCRIPT_RE.finditer(text):
        parts.append(fn(text[pos:m.start()]))
        parts.append(m.group(0))
        pos = m.end()
    parts.append(fn(text[pos:]))
    return ''.join(parts)


def code_container(span: tuple[str, str], index: int) -> str:
    """Escaped, labelled display container for one fenced code block or {{htmlcode}} sample."""
    lang, code = span
    lang = lang.lower()
    escaped = html.escape(code, quote=True).replace('{', '&#123;').replace('}', '&#125;')
    return (
        f'<div class="code-block-container" data-language="{lang}" id="code-{index}">'
        f'<div class="code-block-header"><span class="language-label">{lang}</span>'
        f'<button class="copy-button" type="button">Copy</button></div>'
        f'<pre><code class="language-{lang}">{escaped}</code></pre></div>'
    )


class MarkdownRenderer:
    """Render markdown bodies to HTML fragments; safe to share across threads."""

    def __init__(self, options: RenderOptions = None):
        self.options = options or RenderOptions()
        self.stages: tuple[Stage, ...] = self._build_stages()

    def _build_stages(self) -> tuple[Stage, ...]:
        opts = self.options
        webp_index = opts.webp_index if opts.optimized_images else frozenset()
        return (
            Stage('protect-code', lambda t, s: s.code.protect(t)),
            Stage('protect-scripts', lambda t, s: s.scripts.protect(t)),
            Stage('images', lambda t, s: inline.render_images(t, webp_index)),
            Stage('links', lambda t, s: inline.render_links(t, opts.external_links)),
            Stage('lists', lambda t, s: blocks.render_lists(t)),
            Stage('definition-lists', lambda t, s: blocks.render_definition_lists(t)),
            Stage('tables', lambda t, s: blocks.render_tables(t)),
            Stage('task-items', lambda t, s: blocks.render_task_items(t)),
            Stage('abbreviations', self._abbreviations),
            Stage('footnotes', self._footnotes),
            Stage('restore-scripts', lambda t, s: s.scripts.restore(t)),
            Stage('headers', lambda t, s: inline.render_headers(t), raw_safe=True),
            Stage('emphasis', lambda t, s: inline.render_emphasis(t), raw_safe=True),
            Stage('blockquotes', lambda t, s: inline.render_blockquotes(t), raw_safe=True),
            Stage('rules', lambda t, s: inline.render_rules(t), raw_safe=True),
            Stage('paragraphs', lambda t, s: assemble.assemble(t), raw_safe=True),
            Stage('restore-code', self._restore_code),
        )

    @staticmethod
    def _abbreviations(text: str, state: RenderState) -> str:
        text, definitions = inline.collect_abbreviations(text)
        return inline.apply_abbreviations(text, definitions)

    @staticmethod
    def _footnotes(text: str, state: RenderState) -> str:
        text, state.footnotes = inline.collect_footnotes(text)
        text, state.footnote_numbers = inline.apply_footnote_refs(text)
        section = inline.render_footnote_section(state.footnotes, state.footnote_numbers)
        return f"{text}\n\n{section}\n" if section else text

    @staticmethod
    def _restore_code(text: str, state: RenderState) -> str:
        return state.code.restore(text, render=code_container)

    def render(self, markdown: str) -> str:
        """Run every stage in order over one markdown body."""
        state = RenderState()
        text = markdown.replace('\r\n', '\n')
        for stage in self.stages:
            if stage.raw_safe:
                text = outside_raw(text, lambda t, st=stage: st.apply(t, state))
            else:
                text = stage.apply(text, state)
            logger.debug("stage %s done (%d chars)", stage.name, len(text))
        return text.strip()


def render_markdown(markdown: str, options: RenderOptions = None) -> str:
    """Convenience wrapper: render one body with a throwaway renderer."""
    return MarkdownRenderer(options).render(markdown)
