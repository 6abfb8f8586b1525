from __future__ import annotations

import re
import time
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from modules.cloze import ClozeCrafter, ClozeFormatter, HtmlClozeFormatter
from modules.utils import blank_frontmatter, get_logger, log_flashcard_parse

from .expander import expand_text
from .models import SCHEDULING_MARKER, Face, ParserOptions, QuestionUnit
from .segmenter import segment

LOG = get_logger()

_TRAILING_SCHEDULING_RE = re.compile(r'\s*(' + re.escape(SCHEDULING_MARKER) + r'[^\n]*?-->)\s*$')


def split_scheduling(text: str) -> Tuple[str, Optional[str]]:
    """Separate a trailing scheduling comment from the question text."""
    m = _TRAILING_SCHEDULING_RE.search(text)
    if not m:
        return text, None
    return text[:m.start()], m.group(1)


class ParsedCard(BaseModel):
    unit: QuestionUnit
    scheduling: Optional[str] = None
    faces: List[Face]


class NoteParseResult(BaseModel):
    cards: List[ParsedCard] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def card_at_line(self, line_num: int) -> Optional[ParsedCard]:
        for card in self.cards:
            if card.unit.contains_line(line_num):
                return card
        return None


def parse_note(
    text: str,
    options: Optional[ParserOptions] = None,
    formatter: Optional[ClozeFormatter] = None,
    request_id: Optional[str] = None,
) -> NoteParseResult:
    """Segment a note and expand every question found in it.

    A note without any question is a normal, empty result.
    """
    options = options or ParserOptions()
    formatter = formatter or HtmlClozeFormatter()
    recognizer = ClozeCrafter.get_instance(options.cloze_patterns)
    start = time.time()

    body = blank_frontmatter(text)
    units = segment(body, options, recognizer=recognizer)
    cards: List[ParsedCard] = []
    for unit in units:
        question, scheduling = split_scheduling(unit.text)
        faces = expand_text(unit.kind, question, options, recognizer=recognizer, formatter=formatter)
        cards.append(ParsedCard(unit=unit, scheduling=scheduling, faces=faces))

    duration_ms = int((time.time() - start) * 1000)
    face_count = sum(len(c.faces) for c in cards)
    kind_counts = dict(Counter(u.kind.value for u in units))
    line_count = body.count('\n') + 1
    try:
        log_flashcard_parse(request_id or '', len(units), face_count, kind_counts, line_count, duration_ms)
    except Exception:
        LOG.exception('log_flashcard_parse_failed', exc_info=True)

    metadata = {
        'processing_time_ms': duration_ms,
        'unit_count': len(units),
        'face_count': face_count,
        'kind_counts': kind_counts,
        'line_count': line_count,
    }
    return NoteParseResult(cards=cards, metadata=metadata)
