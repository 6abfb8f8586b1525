"""
Cloze deletion support: pattern-driven recognition and face rendering.
"""

from .crafter import (
	ClozeCrafter,
	ClozeNote,
	ClozeDeletion,
	ClozePattern,
	ClozePatternError,
	ClozeRecognizer,
	ClozeFormatter,
)
from .formatter import HtmlClozeFormatter, PlainClozeFormatter, get_formatter

__all__ = [
	'ClozeCrafter',
	'ClozeNote',
	'ClozeDeletion',
	'ClozePattern',
	'ClozePatternError',
	'ClozeRecognizer',
	'ClozeFormatter',
	'HtmlClozeFormatter',
	'PlainClozeFormatter',
	'get_formatter',
]
