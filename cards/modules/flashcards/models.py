"""Value objects shared by the segmenter, the expander and the HTTP layer.

- CardType: the five inline-markup conventions a question can use
- QuestionUnit: one segmented question with its source line range
- Face: one front/back review direction
- ParserOptions: separators, end marker, cloze patterns and outline tag

Custom exceptions: FlashcardParserError, FlashcardOptionsError
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from modules.cloze import ClozePattern

SCHEDULING_MARKER = '<!--SR:'
COMMENT_OPEN = '<!--'
COMMENT_CLOSE = '-->'

DEFAULT_CLOZE_PATTERNS = ['==[123;;]answer[;;hint]==']


class FlashcardParserError(Exception):
    pass


class FlashcardOptionsError(FlashcardParserError):
    pass


class CardType(str, Enum):
    INLINE_BASIC = 'InlineBasic'
    INLINE_REVERSED = 'InlineReversed'
    BLOCK_BASIC = 'BlockBasic'
    BLOCK_REVERSED = 'BlockReversed'
    CLOZE = 'Cloze'

    @property
    def is_inline(self) -> bool:
        return self in (CardType.INLINE_BASIC, CardType.INLINE_REVERSED)


class QuestionUnit(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: CardType
    text: str
    # zero-based, inclusive, in source document coordinates
    start_line: int = Field(..., ge=0)
    end_line: int = Field(..., ge=0)

    @model_validator(mode='after')
    def _check_range(self) -> 'QuestionUnit':
        if self.start_line > self.end_line:
            raise ValueError(f'start_line {self.start_line} is after end_line {self.end_line}')
        return self

    def contains_line(self, line_num: int) -> bool:
        return self.start_line <= line_num <= self.end_line


class Face(BaseModel):
    model_config = ConfigDict(frozen=True)

    front: str
    back: str


class ParserOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    inline_separator: str = Field('::', description='Separator for single-line basic cards')
    inline_reversed_separator: str = Field(':::', description='Separator for single-line reversed cards')
    block_separator: str = Field('?', description='Separator line for multi-line basic cards')
    block_reversed_separator: str = Field('??', description='Separator line for multi-line reversed cards')
    block_end_marker: str = Field('', description='Optional line that ends multi-line cards (blank lines end them otherwise)')
    cloze_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_CLOZE_PATTERNS))
    outline_tag: Optional[str] = Field('#flashcard', description='Tag marking outline (list item) cards; empty disables them')

    @field_validator('cloze_patterns')
    @classmethod
    def _check_cloze_patterns(cls, value: List[str]) -> List[str]:
        for descriptor in value:
            ClozePattern.parse(descriptor)
        return value

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ParserOptions':
        try:
            return cls(**(data or {}))
        except ValidationError as e:
            raise FlashcardOptionsError(str(e)) from e
