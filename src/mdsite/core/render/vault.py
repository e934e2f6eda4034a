"""Placeholder vault: swap raw spans for opaque tokens and put them back later"""

import logging
import re
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r'```(\w+)?\n(.*?)```', re.DOTALL)
HTMLCODE_RE = re.compile(r'\{\{htmlcode\}\}(?P<sample>.*?)\{\{/htmlcode\}\}', re.DOTALL)
CODE_RE = re.compile(f"{FENCE_RE.pattern}|{HTMLCODE_RE.pattern}", re.DOTALL)
SCRIPT_RE = re.compile(r'<(script|style)\b[^>]*>.*?</\1>', re.DOTALL | re.IGNORECASE)

CODE_TOKEN = '@@CODEBLOCK{}@@'
SCRIPT_TOKEN = '__SCRIPT_BLOCK_{}__'


class _Literal(str):
    """Source text that already looked like a token; always restored verbatim."""


class PlaceholderVault:
    """Protect every match of pattern behind an indexed token.

    `token_format` is a str.format template with one positional slot for the
    span index. Captured spans are the raw match text unless `capture` is
    given, in which case it maps the match object to the stored value. Text
    that already looks like one of this vault's tokens is protected too, so
    restore(protect(x)) gives back x.
    """

    def __init__(
        self,
        token_format: str,
        pattern: re.Pattern,
        capture: Optional[Callable[[re.Match], Any]] = None,
        pad: str = '',
        ):
        self.token_format = token_format
        self.capture = capture or (lambda m: m.group(0))
        self.pad = pad
        self.spans: list[Any] = []
        prefix, _, suffix = token_format.partition('{}')
        token_src = re.escape(prefix) + r'(\d+)' + re.escape(suffix)
        self.token_re = re.compile(token_src)
        self.pattern = re.compile(
            f"{pattern.pattern}|(?P<_literal>{re.escape(prefix)}\\d+{re.escape(suffix)})",
            pattern.flags,
        )

    def token(self, index: int) -> str:
        return self.token_format.format(index)

    def protect(self, text: str) -> str:
        """Replace each pattern match with a token; spans are appended in match order."""
        def _swap(m: re.Match) -> str:
            if m.group('_literal') is not None:
                self.spans.append(_Literal(m.group('_literal')))
                return self.token(len(self.spans) - 1)
            self.spans.append(self.capture(m))
            return f"{self.pad}{self.token(len(self.spans) - 1)}{self.pad}"
        return self.pattern.sub(_swap, text)

    def restore(self, text: str, render: Optional[Callable[[Any, int], str]] = None) -> str:
        """Substitute tokens back; unknown indices stay visible in the output."""
        def _back(m: re.Match) -> str:
            index = int(m.group(1))
            if index >= len(self.spans):
                logger.warning("Unrestorable placeholder %s left in output", m.group(0))
                return m.group(0)
            span = self.spans[index]
            if isinstance(span, _Literal) or render is None:
                return span
            return render(span, index)
        return self.token_re.sub(_back, text)


def _code_or_sample(m: re.Match) -> tuple[str, str]:
    if m.group('sample') is not None:
        return 'html', m.group('sample').strip('\n')
    return m.group(1) or 'plaintext', m.group(2)


def code_vault() -> PlaceholderVault:
    """Vault for fenced code blocks and {{htmlcode}} samples; spans are (language, code) pairs.

    Whichever construct opens first wins, so a fence inside a sample stays part
    of the sample and a sample marker inside a fence stays literal code.
    """
    return PlaceholderVault(CODE_TOKEN, CODE_RE, capture=_code_or_sample)


def script_vault() -> PlaceholderVault:
    """Vault for literal <script>/<style> elements, padded onto their own paragraph."""
    return PlaceholderVault(SCRIPT_TOKEN, SCRIPT_RE, pad='\n\n')


def protect(text: str, pattern: re.Pattern, token_format: str = CODE_TOKEN) -> tuple[str, list[str]]:
    """Functional form: return (text_with_tokens, captured_spans)."""
    vault = PlaceholderVault(token_format, pattern)
    return vault.protect(text), vault.spans


def restore(text: str, spans: list[str], token_format: str = CODE_TOKEN) -> str:
    """Functional form of PlaceholderVault.restore for spans produced by protect()."""
    vault = PlaceholderVault(token_format, re.compile(r'(?!)'))
    vault.spans = list(spans)
    return vault.restore(text)
