# src/search/ranking.py

import re
from typing import Iterable, List, Sequence, Tuple

from src.modules.search.schemas import SearchResultBase

def relevance_score(query: str, text: str) -> float:
    """
    Term-overlap score of a query against a piece of text.

    Each lower-cased query token scores 1.0 when it occurs anywhere in the text
    and another 0.5 when it also occurs as a whole word. The sum is averaged over
    the token count, so the result lies in [0, 1.5].
    """
    tokens = query.lower().split()
    if not tokens:
        return 0.0

    text_lower = (text or "").lower()
    score = 0.0
    for token in tokens:
        if token in text_lower:
            score += 1.0
            if re.search(rf"\b{re.escape(token)}\b", text_lower):
                score += 0.5

    return score / len(tokens)

def merge_results(
    query: str,
    per_source: Iterable[Tuple[str, Sequence[SearchResultBase]]],
    limit: int,
) -> List[SearchResultBase]:
    """
    Score, merge and rank per-source hits.

    Sources are concatenated in the order given. A repeated id within one source
    is dropped (first occurrence wins); the same id coming from two different
    sources is kept twice. Ties keep insertion order.
    """
    merged: List[SearchResultBase] = []
    for _source, items in per_source:
        seen = set()
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            merged.append(
                item.model_copy(update={"relevance_score": relevance_score(query, item.match_text)})
            )

    # list.sort is stable, also with reverse=True
    merged.sort(key=lambda result: result.relevance_score, reverse=True)
    return merged[:limit]
