"""Turn a question unit into the front/back faces shown during review.

Each card kind has one handler; handlers are pure functions of the unit text
and the parser options. Separator positions are not re-validated here: the
segmenter only assigns a separator-based kind after it has seen the separator.
"""
from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from modules.cloze import ClozeCrafter, ClozeFormatter, ClozeRecognizer, HtmlClozeFormatter
from modules.utils import find_line_index_ignoring_ws

from .models import SCHEDULING_MARKER, CardType, Face, ParserOptions, QuestionUnit
from .segmenter import compile_outline_tag

_LIST_MARKER_RE = re.compile(r'^\s*-\s+')
_SCHEDULING_FRAGMENT_RE = re.compile(re.escape(SCHEDULING_MARKER) + r'.*?-->')


def _split_inline(text: str, separator: str) -> List[str]:
    idx = text.find(separator)
    return [text[:idx], text[idx + len(separator):]]


def _split_block(text: str, separator: str) -> List[str]:
    lines = text.split('\n')
    idx = find_line_index_ignoring_ws(lines, separator)
    return ['\n'.join(lines[:idx]), '\n'.join(lines[idx + 1:])]


def _expand_outline(lines: List[str], tag_re) -> List[Face]:
    front = _LIST_MARKER_RE.sub('', lines[0], count=1)
    front = tag_re.sub('', front)
    front = _SCHEDULING_FRAGMENT_RE.sub('', front).strip()

    answer_lines = []
    for line in lines[1:]:
        if SCHEDULING_MARKER in line or not line.strip():
            continue
        answer_lines.append(_LIST_MARKER_RE.sub('  ', line, count=1).rstrip())
    return [Face(front=front, back='\n'.join(answer_lines).strip())]


def expand_inline_basic(text: str, options: ParserOptions, **_) -> List[Face]:
    front, back = _split_inline(text, options.inline_separator)
    return [Face(front=front, back=back)]


def expand_inline_reversed(text: str, options: ParserOptions, **_) -> List[Face]:
    side1, side2 = _split_inline(text, options.inline_reversed_separator)
    return [Face(front=side1, back=side2), Face(front=side2, back=side1)]


def expand_block_basic(text: str, options: ParserOptions, **_) -> List[Face]:
    lines = text.split('\n')
    tag_re = compile_outline_tag(options.outline_tag)
    if tag_re is not None and tag_re.search(lines[0]):
        return _expand_outline(lines, tag_re)
    front, back = _split_block(text, options.block_separator)
    return [Face(front=front, back=back)]


def expand_block_reversed(text: str, options: ParserOptions, **_) -> List[Face]:
    side1, side2 = _split_block(text, options.block_reversed_separator)
    return [Face(front=side1, back=side2), Face(front=side2, back=side1)]


def expand_cloze(
    text: str,
    options: ParserOptions,
    recognizer: Optional[ClozeRecognizer] = None,
    formatter: Optional[ClozeFormatter] = None,
) -> List[Face]:
    recognizer = recognizer or ClozeCrafter.get_instance(options.cloze_patterns)
    formatter = formatter or HtmlClozeFormatter()
    note = recognizer.create_cloze_note(text)
    return [
        Face(front=note.get_card_front(i, formatter), back=note.get_card_back(i, formatter))
        for i in range(note.num_cards)
    ]


HANDLERS: Dict[CardType, Callable[..., List[Face]]] = {
    CardType.INLINE_BASIC: expand_inline_basic,
    CardType.INLINE_REVERSED: expand_inline_reversed,
    CardType.BLOCK_BASIC: expand_block_basic,
    CardType.BLOCK_REVERSED: expand_block_reversed,
    CardType.CLOZE: expand_cloze,
}


def expand_text(
    kind: CardType,
    text: str,
    options: Optional[ParserOptions] = None,
    recognizer: Optional[ClozeRecognizer] = None,
    formatter: Optional[ClozeFormatter] = None,
) -> List[Face]:
    options = options or ParserOptions()
    handler = HANDLERS[CardType(kind)]
    return handler(text, options, recognizer=recognizer, formatter=formatter)


def expand(
    unit: QuestionUnit,
    options: Optional[ParserOptions] = None,
    recognizer: Optional[ClozeRecognizer] = None,
    formatter: Optional[ClozeFormatter] = None,
) -> List[Face]:
    return expand_text(unit.kind, unit.text, options, recognizer=recognizer, formatter=formatter)
