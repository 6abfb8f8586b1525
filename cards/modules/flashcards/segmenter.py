"""Line scanner that splits a markdown note into typed question units.

The scan is a single forward pass. Within one iteration the index may jump
ahead to swallow a comment, a fenced code block or an outline card, but it
never moves backwards.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from modules.cloze import ClozeCrafter, ClozeRecognizer
from modules.utils import get_logger, leading_whitespace

from .models import (
    COMMENT_CLOSE,
    COMMENT_OPEN,
    SCHEDULING_MARKER,
    CardType,
    ParserOptions,
    QuestionUnit,
)

LOG = get_logger()

_LIST_ITEM_RE = re.compile(r'^\s*-\s+')
_FENCE_OPENERS = ('```', '~~~')
_FENCE_TOKEN_RE = re.compile(r'^(`+|~+)')


def marker_inside_code_span(text: str, marker: str, marker_idx: int) -> bool:
    # odd number of backticks on both sides means we sit inside `inline code`
    before = text.count('`', 0, marker_idx)
    after = text.count('`', marker_idx + len(marker))
    return before % 2 == 1 and after % 2 == 1


def has_inline_marker(text: str, marker: str) -> bool:
    if not marker:
        return False
    idx = text.find(marker)
    if idx == -1:
        return False
    return not marker_inside_code_span(text, marker, idx)


def compile_outline_tag(tag: Optional[str]) -> Optional[Pattern]:
    if not tag:
        return None
    return re.compile(re.escape(tag) + r'(?!\w)', re.IGNORECASE)


def is_outline_card_line(line: str, tag_re: Optional[Pattern]) -> bool:
    if tag_re is None:
        return False
    return bool(_LIST_ITEM_RE.match(line)) and bool(tag_re.search(line))


def scan_outline_card(lines: Sequence[str], start: int) -> Tuple[QuestionUnit, int]:
    """Collect an outline card whose tagged list item sits at ``lines[start]``.

    Returns the unit and the number of lines it consumed (at least one).
    Deeper-indented items, continuation lines and scheduling comments belong
    to the answer; a blank line or a list item at the same or a shallower
    indent ends the card without being consumed.
    """
    question_indent = leading_whitespace(lines[start])
    card_lines = [lines[start]]
    end = start
    while end + 1 < len(lines):
        nxt = lines[end + 1]
        if not nxt.strip():
            break
        if SCHEDULING_MARKER in nxt:
            card_lines.append(nxt)
            end += 1
            continue
        if _LIST_ITEM_RE.match(nxt) and leading_whitespace(nxt) <= question_indent:
            break
        card_lines.append(nxt)
        end += 1

    unit = QuestionUnit(
        kind=CardType.BLOCK_BASIC,
        text='\n'.join(card_lines).rstrip(),
        start_line=start,
        end_line=end,
    )
    return unit, end - start + 1


def _skip_comment(lines: Sequence[str], idx: int) -> int:
    """Index at which scanning resumes after the HTML comment opened on ``lines[idx]``."""
    close = idx
    while close < len(lines) - 1 and COMMENT_CLOSE not in lines[close]:
        close += 1
    # the line after the closing one is dropped as well
    return close + 2


def _inline_separators(options: ParserOptions) -> List[Tuple[str, CardType]]:
    separators = [
        (options.inline_separator, CardType.INLINE_BASIC),
        (options.inline_reversed_separator, CardType.INLINE_REVERSED),
    ]
    # longest first, so "::" never shadows ":::"
    separators.sort(key=lambda item: len(item[0]), reverse=True)
    return separators


def segment(
    text: str,
    options: Optional[ParserOptions] = None,
    recognizer: Optional[ClozeRecognizer] = None,
    log: Optional[logging.Logger] = None,
) -> List[QuestionUnit]:
    """Return the question units found in ``text`` in document order.

    Malformed markup never raises; it simply produces no unit.
    """
    options = options or ParserOptions()
    recognizer = recognizer or ClozeCrafter.get_instance(options.cloze_patterns)
    log = log or LOG

    inline_separators = _inline_separators(options)
    outline_re = compile_outline_tag(options.outline_tag)
    end_marker = options.block_end_marker

    lines = text.replace('\r\n', '\n').split('\n')
    total = len(lines)
    units: List[QuestionUnit] = []

    def emit(kind: CardType, body: str, first: int, last: int) -> None:
        unit = QuestionUnit(kind=kind, text=body, start_line=first, end_line=last)
        units.append(unit)
        log.debug('segment_unit', extra={'kind': kind.value, 'start_line': first, 'end_line': last})

    card_text = ''
    card_type: Optional[CardType] = None
    first_line = 0
    i = 0
    while i < total:
        line = lines[i]
        trimmed = line.strip()

        if line.startswith(COMMENT_OPEN) and not line.startswith(SCHEDULING_MARKER):
            i = _skip_comment(lines, i)
            if not card_text:
                first_line = i
            continue

        is_empty = len(trimmed) == 0
        at_end_marker = bool(end_marker) and trimmed == end_marker
        if (is_empty and not end_marker) or (is_empty and card_type is None) or at_end_marker:
            if card_type is not None:
                emit(card_type, card_text.rstrip(), first_line, i - 1)
                card_type = None
            card_text = ''
            first_line = i + 1
            i += 1
            continue

        if card_text:
            card_text += '\n'
        card_text += line.rstrip()

        for separator, kind in inline_separators:
            if has_inline_marker(line, separator):
                card_type = kind
                break

        if is_outline_card_line(line, outline_re):
            unit, consumed = scan_outline_card(lines, i)
            emit(unit.kind, unit.text, unit.start_line, unit.end_line)
            card_type = None
            card_text = ''
            i += consumed
            first_line = i
            continue

        if card_type is not None and card_type.is_inline:
            card_text = line.rstrip()
            first_line = i
            if i + 1 < total and lines[i + 1].startswith(SCHEDULING_MARKER):
                card_text += '\n' + lines[i + 1]
                i += 1
            emit(card_type, card_text, first_line, i)
            card_type = None
            card_text = ''
            first_line = i + 1
        elif options.block_separator and trimmed == options.block_separator:
            # a separator with nothing in front of it does not open a card
            if len(card_text) > 1:
                card_type = CardType.BLOCK_BASIC
        elif options.block_reversed_separator and trimmed == options.block_reversed_separator:
            if len(card_text) > 1:
                card_type = CardType.BLOCK_REVERSED
        elif line.startswith(_FENCE_OPENERS):
            fence = _FENCE_TOKEN_RE.match(line).group(1)
            while i + 1 < total and not lines[i + 1].startswith(fence):
                i += 1
                card_text += '\n' + lines[i]
            if i + 1 < total:
                i += 1
                card_text += '\n' + lines[i]
        elif card_type is None and recognizer.is_cloze_line(line):
            card_type = CardType.CLOZE

        i += 1

    if card_type is not None and card_text:
        emit(card_type, card_text.rstrip(), first_line, total - 1)

    log.debug('segment_complete', extra={'unit_count': len(units), 'line_count': total})
    return units
