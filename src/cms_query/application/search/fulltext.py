"""Application search – weighted full-text query.

:class:`FullTextQuery` is the store-neutral description of a free-text
search: the sanitised term, the text-search language and the weighted
searchable fields in registration order. SQL stores hand these to the
database (PostgreSQL ``setweight``/``to_tsvector``/``websearch_to_tsquery``/
``ts_rank``); :class:`~cms_query.application.search.memory.InMemorySearchStore`
uses the pure-Python matcher below.

Web-search syntax (as PostgreSQL's ``websearch_to_tsquery``):

* ``"quoted text"`` is a phrase: the words must appear consecutively;
* bare words are joined by an implicit AND;
* ``or`` between two terms makes an alternative (AND binds tighter);
* a leading ``-`` excludes a word or phrase.
"""
from __future__ import annotations

import dataclasses
import functools
import re
from typing import Any

from cms_query.application.search.configuration import FieldDescriptor, SearchWeight

_WORD = re.compile(r"\w+", re.UNICODE)
_TOKEN = re.compile(r'(-?)"([^"]*)"?|(\S+)')

HIGHLIGHT_START = "<mark>"
HIGHLIGHT_STOP = "</mark>"


def tokenize(text: str | None) -> list[str]:
    if not text:
        return []
    return [word.lower() for word in _WORD.findall(text)]


@dataclasses.dataclass(frozen=True)
class Term:
    """One word or phrase of a web-search query."""

    words: tuple[str, ...]
    negated: bool = False

    def occurrences(self, tokens: list[str]) -> int:
        size = len(self.words)
        if not size:
            return 0
        return sum(1 for i in range(len(tokens) - size + 1) if tuple(tokens[i : i + size]) == self.words)


@dataclasses.dataclass(frozen=True)
class WebSearchQuery:
    """Disjunction of conjunctions: ``alternatives[i]`` is a list of ANDed terms."""

    alternatives: tuple[tuple[Term, ...], ...]

    @classmethod
    def parse(cls, text: str) -> "WebSearchQuery":
        alternatives: list[list[Term]] = []
        current: list[Term] = []
        pending_or = False
        for match in _TOKEN.finditer(text):
            negated_phrase, phrase, bare = match.groups()
            if bare is not None:
                if bare.lower() == "or":
                    pending_or = bool(current)
                    continue
                negated = bare.startswith("-")
                words = tuple(tokenize(bare[1:] if negated else bare))
            else:
                negated = bool(negated_phrase)
                words = tuple(tokenize(phrase))
            if not words:
                continue
            if pending_or:
                alternatives.append(current)
                current = []
                pending_or = False
            current.append(Term(words, negated))
        if current:
            alternatives.append(current)
        return cls(tuple(tuple(group) for group in alternatives))

    @property
    def is_empty(self) -> bool:
        return not self.alternatives

    @property
    def positive_words(self) -> frozenset[str]:
        return frozenset(w for group in self.alternatives for t in group if not t.negated for w in t.words)

    def matches(self, documents: list[list[str]]) -> bool:
        """*documents* holds one token list per searchable field."""
        return any(all(_term_matches(term, documents) for term in group) for group in self.alternatives)


def _term_matches(term: Term, documents: list[list[str]]) -> bool:
    found = any(term.occurrences(tokens) for tokens in documents)
    return not found if term.negated else found


@dataclasses.dataclass(frozen=True)
class FullTextQuery:
    """A free-text search over weighted fields.

    *fields* keeps registration order; *highlight_fields* names the
    searchable fields whose matched words should be marked up in results.
    """

    term: str
    language: str
    fields: tuple[tuple[FieldDescriptor, SearchWeight], ...]
    highlight_fields: tuple[FieldDescriptor, ...] = ()

    @functools.cached_property
    def parsed(self) -> WebSearchQuery:
        return WebSearchQuery.parse(self.term)

    def _documents(self, row: Any) -> list[tuple[list[str], SearchWeight]]:
        return [(tokenize(_text(field.read(row))), weight) for field, weight in self.fields]

    def matches(self, row: Any) -> bool:
        return self.parsed.matches([tokens for tokens, _ in self._documents(row)])

    def rank(self, row: Any) -> float:
        """Weighted hit score normalised into ``[0, 1)``.

        Every occurrence of a non-negated query word counts its field's
        weight (A=1.0, B=0.4, C=0.2, D=0.1); the sum *s* is mapped to
        ``s / (1 + s)``, so more and better-placed hits always rank higher.
        """
        words = self.parsed.positive_words
        total = 0.0
        for tokens, weight in self._documents(row):
            hits = sum(1 for token in tokens if token in words)
            total += hits * weight.rank_weight
        return total / (1.0 + total)

    def highlight(self, row: Any) -> dict[str, str] | None:
        if not self.highlight_fields:
            return None
        words = self.parsed.positive_words

        def mark(match: re.Match[str]) -> str:
            word = match.group(0)
            return f"{HIGHLIGHT_START}{word}{HIGHLIGHT_STOP}" if word.lower() in words else word

        return {field.name: _WORD.sub(mark, _text(field.read(row))) for field in self.highlight_fields}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


__all__ = ["HIGHLIGHT_START", "HIGHLIGHT_STOP", "FullTextQuery", "Term", "WebSearchQuery", "tokenize"]
