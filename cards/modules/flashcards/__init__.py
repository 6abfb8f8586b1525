"""
Flashcard extraction from markdown notes.
Segments notes into question units and expands them into review faces.
"""

from .models import (
	CardType,
	QuestionUnit,
	Face,
	ParserOptions,
	FlashcardParserError,
	FlashcardOptionsError,
	SCHEDULING_MARKER,
)
from .segmenter import segment, scan_outline_card, has_inline_marker
from .expander import expand, expand_text
from .note import parse_note, split_scheduling, ParsedCard, NoteParseResult

__all__ = [
	'CardType',
	'QuestionUnit',
	'Face',
	'ParserOptions',
	'FlashcardParserError',
	'FlashcardOptionsError',
	'SCHEDULING_MARKER',
	'segment',
	'scan_outline_card',
	'has_inline_marker',
	'expand',
	'expand_text',
	'parse_note',
	'split_scheduling',
	'ParsedCard',
	'NoteParseResult',
]
