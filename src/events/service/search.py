"""Relevance ranking for event listings."""

import typing as t

from rapidfuzz import fuzz, utils

# Results scoring below this are dropped from search listings
MIN_SCORE = 60.0


def score(query: str, corpus: str) -> float:
    """How well ``corpus`` matches ``query``, from 0 to 100.

    Matching is case and punctuation insensitive and tolerates partial words.
    """
    if not query or not corpus:
        return 0.0
    return float(fuzz.WRatio(query, corpus, processor=utils.default_process))


def event_corpus(name: str, description: str, tags: t.Iterable[str]) -> str:
    return " ".join([name, description, *tags])


def rank(query: str, items: t.Iterable[t.Any], corpus: t.Callable[[t.Any], str]) -> list[t.Any]:
    """Keep the items matching ``query`` well enough, best match first."""
    scored = [(score(query, corpus(item)), item) for item in items]
    return [item for value, item in sorted(scored, key=lambda pair: pair[0], reverse=True) if value >= MIN_SCORE]
