from __future__ import annotations

from typing import Optional


class HtmlClozeFormatter:
    """Colored span placeholders, the presentation used inside note previews."""

    def asking(self, answer: Optional[str] = None, hint: Optional[str] = None) -> str:
        placeholder = f'[{hint}]' if hint else '[...]'
        return f"<span style='color:#2196f3'>{placeholder}</span>"

    def showing_answer(self, answer: str, hint: Optional[str] = None) -> str:
        return f"<span style='color:#2196f3'>{answer}</span>"

    def hiding(self, answer: Optional[str] = None, hint: Optional[str] = None) -> str:
        placeholder = f'[{hint}]' if hint else '[...]'
        return f"<span style='color:var(--code-comment)'>{placeholder}</span>"


class PlainClozeFormatter:
    """Markup-free rendering for exports and tests."""

    def asking(self, answer: Optional[str] = None, hint: Optional[str] = None) -> str:
        return f'[{hint}]' if hint else '[...]'

    def showing_answer(self, answer: str, hint: Optional[str] = None) -> str:
        return answer

    def hiding(self, answer: Optional[str] = None, hint: Optional[str] = None) -> str:
        return f'[{hint}]' if hint else '[...]'


FORMATTERS = {
    'html': HtmlClozeFormatter,
    'plain': PlainClozeFormatter,
}


def get_formatter(name: str = 'html'):
    try:
        return FORMATTERS[name]()
    except KeyError:
        raise ValueError(f'unknown cloze formatter: {name!r}') from None
