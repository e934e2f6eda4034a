"""Line-oriented parsers for nested lists, definition lists and tables"""

import re
from dataclasses import dataclass
from typing import Literal


LIST_ITEM_RE = re.compile(r'^([ ]*)([-*]|\d+\.)[ ]+(.*)$')
DEFINITION_RE = re.compile(r'^:\s+(.+)$')
SEPARATOR_RE = re.compile(r'^\|?[-:|]*-[-:|]*\|?$')
TOKEN_LINE_RE = re.compile(r'^(?:@@CODEBLOCK\d+@@|__SCRIPT_BLOCK_\d+__)$')
FOOTNOTE_DEF_RE = re.compile(r'^\[\^[^\]]+\]:')
ORDERED_RE = re.compile(r'^\d+\.')

# Lines starting with these never act as a definition-list term.
_NOT_TERM_PREFIXES = ('<', '>', '#', '|', '-', '*', '```', '_[', '\\_[')


@dataclass
class ListFrame:
    """One open <ul>/<ol>; indent is the nesting level, not a column."""
    kind: Literal['ul', 'ol']
    indent: int


def render_lists(text: str, indent_unit: int = 2, max_depth: int = 3) -> str:
    """Convert -, * and N. items into nested <ul>/<ol> markup.

    Nesting follows indentation quantized to indent_unit spaces; levels past
    max_depth are clamped to the deepest allowed level. The frame stack is
    unwound on the first non-list line and at end of input.
    """
    out: list[str] = []
    stack: list[ListFrame] = []

    def _close(count: int = None) -> None:
        for _ in range(len(stack) if count is None else count):
            out.append(f"</{stack.pop().kind}>")

    def _open(kind: str, indent: int) -> None:
        out.append(f"<{kind}>")
        stack.append(ListFrame(kind, indent))

    for line in text.split('\n'):
        m = LIST_ITEM_RE.match(line)
        if not m:
            _close()
            out.append(line)
            continue

        level = min(len(m.group(1)) // indent_unit, max_depth - 1)
        kind = 'ol' if m.group(2)[0].isdigit() else 'ul'

        while stack and level < stack[-1].indent:
            _close(1)
        if not stack or level > stack[-1].indent:
            start = stack[-1].indent + 1 if stack else 0
            for depth in range(start, level + 1):
                _open(kind, depth)
        elif stack[-1].kind != kind:
            _close(1)
            _open(kind, level)
        out.append(f"<li>{m.group(3)}</li>")

    _close()
    return '\n'.join(out)


def render_task_items(text: str) -> str:
    """Turn '<li>[x] done' / '<li>[ ] todo' items into disabled checkboxes."""
    text = re.sub(
        r'<li>\s*\[[xX]\]\s*(.*?)</li>',
        r'<li class="task-list-item"><input type="checkbox" checked disabled> \1</li>',
        text,
    )
    return re.sub(
        r'<li>\s*\[ \]\s*(.*?)</li>',
        r'<li class="task-list-item"><input type="checkbox" disabled> \1</li>',
        text,
    )


def _is_term_candidate(stripped: str) -> bool:
    """True if a non-empty line is plain text rather than another block construct."""
    return bool(stripped) and not (
        stripped.startswith(_NOT_TERM_PREFIXES)
        or ORDERED_RE.match(stripped)
        or FOOTNOTE_DEF_RE.match(stripped)
        or TOKEN_LINE_RE.match(stripped)
    )


def render_definition_lists(text: str) -> str:
    """Pair 'term' lines with following ': definition' lines into <dl> blocks."""
    lines = text.split('\n')
    out: list[str] = []
    open_list = False

    for i, line in enumerate(lines):
        stripped = line.strip()
        definition = DEFINITION_RE.match(stripped)

        if definition:
            if not open_list:
                out.append('<dl>')
                open_list = True
            out.append(f"<dd>{definition.group(1)}</dd>")
            continue

        if open_list:
            out.append('</dl>')
            open_list = False

        following = lines[i + 1].strip() if i + 1 < len(lines) else ''
        if _is_term_candidate(stripped) and DEFINITION_RE.match(following):
            out.append('<dl>')
            out.append(f"<dt>{stripped}</dt>")
            open_list = True
        else:
            out.append(line)

    if open_list:
        out.append('</dl>')
    return '\n'.join(out)


def _cells(row: str) -> list[str]:
    """Split a pipe row into trimmed cells, dropping the line-edge pipes."""
    row = row.strip()
    if row.startswith('|'):
        row = row[1:]
    if row.endswith('|'):
        row = row[:-1]
    return [cell.strip() for cell in row.split('|')]


def _table_html(block: list[str]) -> str:
    header = _cells(block[0])
    parts = ['<div class="table-responsive"><table><thead><tr>']
    parts.extend(f"<th>{cell}</th>" for cell in header)
    parts.append('</tr></thead><tbody>')
    for row in block[2:]:
        cells = _cells(row)
        if not any(cells):
            continue
        parts.append('<tr>')
        parts.extend(f"<td>{cell}</td>" for cell in cells)
        parts.append('</tr>')
    parts.append('</tbody></table></div>')
    return ''.join(parts)


def _is_table(block: list[str]) -> bool:
    return len(block) >= 2 and bool(SEPARATOR_RE.match(re.sub(r'\s', '', block[1])))


def render_tables(text: str) -> str:
    """Convert runs of '|' lines with a separator second row into tables.

    A run without a valid separator row is passed through unchanged.
    """
    out: list[str] = []
    block: list[str] = []

    def _flush() -> None:
        if block:
            out.append(_table_html(block) if _is_table(block) else '\n'.join(block))
            block.clear()

    for line in text.split('\n'):
        if line.startswith('|'):
            block.append(line)
        else:
            _flush()
            out.append(line)
    _flush()
    return '\n'.join(out)
