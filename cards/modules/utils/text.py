"""Small line-oriented string helpers shared by the segmenter and expander."""
from __future__ import annotations

import re
from typing import List, Sequence

_LEADING_WS_RE = re.compile(r'^(\s*)')
_FRONTMATTER_DELIMITER = '---'


def find_line_index_ignoring_ws(lines: Sequence[str], search: str) -> int:
    """Index of the first line equal to `search` once surrounding whitespace is ignored, or -1."""
    target = search.strip()
    for idx, line in enumerate(lines):
        if line.strip() == target:
            return idx
    return -1


def leading_whitespace(line: str) -> int:
    return len(_LEADING_WS_RE.match(line).group(1))


def blank_frontmatter(text: str) -> str:
    """Replace a leading YAML frontmatter block with empty lines.

    Line count is preserved so line numbers reported by the segmenter still
    point into the original document. Text without a closed frontmatter
    block is returned unchanged.
    """
    lines: List[str] = text.split('\n')
    if not lines or lines[0].rstrip() != _FRONTMATTER_DELIMITER:
        return text
    for end in range(1, len(lines)):
        if lines[end].rstrip() == _FRONTMATTER_DELIMITER:
            return '\n'.join([''] * (end + 1) + lines[end + 1:])
    return text
