"""Cloze deletion recognition driven by pattern descriptors.

A descriptor spells out one markup convention, e.g. ``==[123;;]answer[;;hint]==``:

- the text before ``answer`` (minus the optional ``[123<sep>]`` block) opens a deletion
- ``[123<sep>]`` allows an optional group number followed by ``<sep>``
- ``answer`` is the deleted text
- ``[<sep>hint]`` allows an optional hint introduced by ``<sep>``
- the remaining text closes the deletion

Deletions sharing a group number are masked together; every unnumbered
deletion forms its own group. Groups are numbered in order of first
appearance, one card per group.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from modules.utils import get_logger

LOG = get_logger()

_DESCRIPTOR_RE = re.compile(
    r'^(?P<open>.*?)(?:\[123(?P<num_sep>[^\]]+)\])?answer(?:\[(?P<hint_sep>[^\]]+?)hint\])?(?P<close>.*)$',
    re.DOTALL,
)


class ClozePatternError(ValueError):
    pass


class ClozeFormatter(Protocol):
    def asking(self, answer: str, hint: Optional[str] = None) -> str: ...

    def showing_answer(self, answer: str, hint: Optional[str] = None) -> str: ...

    def hiding(self, answer: str, hint: Optional[str] = None) -> str: ...


class ClozeNoteLike(Protocol):
    num_cards: int

    def get_card_front(self, card_idx: int, formatter: ClozeFormatter) -> str: ...

    def get_card_back(self, card_idx: int, formatter: ClozeFormatter) -> str: ...


class ClozeRecognizer(Protocol):
    """What the segmenter and expander need from a cloze implementation."""

    def is_cloze_line(self, line: str) -> bool: ...

    def create_cloze_note(self, text: str) -> ClozeNoteLike: ...


@dataclass(frozen=True)
class ClozePattern:
    descriptor: str
    regex: re.Pattern

    @classmethod
    def parse(cls, descriptor: str) -> 'ClozePattern':
        m = _DESCRIPTOR_RE.match(descriptor or '')
        if not m:
            raise ClozePatternError(f'cloze pattern must contain "answer": {descriptor!r}')
        opener, closer = m.group('open'), m.group('close')
        if not opener or not closer:
            raise ClozePatternError(f'cloze pattern needs opening and closing markup: {descriptor!r}')

        parts = [re.escape(opener)]
        if m.group('num_sep'):
            parts.append(r'(?:(?P<seq>\d+)' + re.escape(m.group('num_sep')) + ')?')
        parts.append(r'(?P<answer>[^\n]+?)')
        if m.group('hint_sep'):
            parts.append(r'(?:' + re.escape(m.group('hint_sep')) + r'(?P<hint>[^\n]+?))?')
        parts.append(re.escape(closer))
        return cls(descriptor=descriptor, regex=re.compile(''.join(parts)))


@dataclass(frozen=True)
class ClozeDeletion:
    start: int
    end: int
    answer: str
    hint: Optional[str]
    seq: Optional[int]
    group: int


class ClozeNote:
    def __init__(self, text: str, deletions: List[ClozeDeletion]):
        self.text = text
        self.deletions = deletions
        self.num_cards = len({d.group for d in deletions})

    def get_card_front(self, card_idx: int, formatter: ClozeFormatter) -> str:
        return self._build(card_idx, formatter, formatter.asking)

    def get_card_back(self, card_idx: int, formatter: ClozeFormatter) -> str:
        return self._build(card_idx, formatter, formatter.showing_answer)

    def _build(self, card_idx: int, formatter: ClozeFormatter, render_active) -> str:
        if card_idx < 0 or card_idx >= self.num_cards:
            raise IndexError(f'cloze card index out of range: {card_idx}')
        out: List[str] = []
        last = 0
        for d in self.deletions:
            out.append(self.text[last:d.start])
            if d.group == card_idx:
                out.append(render_active(d.answer, d.hint))
            else:
                out.append(formatter.hiding(d.answer, d.hint))
            last = d.end
        out.append(self.text[last:])
        return ''.join(out)


class ClozeCrafter:
    def __init__(self, patterns: Iterable[str]):
        self.patterns: List[ClozePattern] = [ClozePattern.parse(p) for p in patterns]

    @classmethod
    def get_instance(cls, patterns: Iterable[str]) -> 'ClozeCrafter':
        return _cached_crafter(tuple(patterns))

    def _find_deletions(self, text: str) -> List[Tuple[int, int, re.Match]]:
        found: List[Tuple[int, int, re.Match]] = []
        for pattern in self.patterns:
            for m in pattern.regex.finditer(text):
                found.append((m.start(), m.end(), m))
        # earliest start wins, longer match first on ties; overlaps dropped
        found.sort(key=lambda item: (item[0], -item[1]))
        kept: List[Tuple[int, int, re.Match]] = []
        cursor = 0
        for start, end, m in found:
            if start < cursor:
                continue
            kept.append((start, end, m))
            cursor = end
        return kept

    def is_cloze_line(self, line: str) -> bool:
        return any(p.regex.search(line) for p in self.patterns)

    def create_cloze_note(self, text: str) -> ClozeNote:
        groups: Dict[Tuple[str, int], int] = {}
        deletions: List[ClozeDeletion] = []
        for idx, (start, end, m) in enumerate(self._find_deletions(text)):
            groupdict = m.groupdict()
            seq = int(groupdict['seq']) if groupdict.get('seq') else None
            key = ('seq', seq) if seq is not None else ('solo', idx)
            if key not in groups:
                groups[key] = len(groups)
            deletions.append(ClozeDeletion(
                start=start,
                end=end,
                answer=groupdict['answer'],
                hint=groupdict.get('hint'),
                seq=seq,
                group=groups[key],
            ))
        return ClozeNote(text, deletions)


# pattern lists come from request options, so the cache must stay bounded
CRAFTER_CACHE_SIZE = 32


@lru_cache(maxsize=CRAFTER_CACHE_SIZE)
def _cached_crafter(patterns: Tuple[str, ...]) -> ClozeCrafter:
    LOG.debug('cloze_crafter_created', extra={'patterns': list(patterns)})
    return ClozeCrafter(patterns)
