from __future__ import annotations

from typing import Iterable, List, Sequence
from urllib.parse import urlparse

from ..schemas import Candidate
from .patterns import ADJACENT_SOURCES, CAMP_DIRECTOR_RE, TITLE_RE


# Additive weights; no normalization or upper bound
W_TITLE = 50
W_EMAIL = 10
W_PHONE = 6
W_ADJACENT = 25
W_PRIORITY_PATH = 10
W_CONTEXT_CAMP_DIRECTOR = 8


def _url_path(page_url: str) -> str:
    try:
        return (urlparse(page_url).path or '').lower()
    except ValueError:
        return ''


def path_has_priority_keyword(page_url: str, prioritized: Iterable[str]) -> bool:
    """True if the URL path contains a keyword, as written or hyphenated ('camp director' -> 'camp-director')."""
    path = _url_path(page_url)
    if not path or path == '/':
        return False
    for k in prioritized or []:
        kl = (k or '').strip().lower()
        if not kl:
            continue
        if kl in path or kl.replace(' ', '-') in path:
            return True
    return False


def score_candidate(candidate: Candidate, page_url: str, prioritized: Sequence[str]) -> int:
    score = 0
    if candidate.title and TITLE_RE.search(candidate.title):
        score += W_TITLE
    if candidate.email:
        score += W_EMAIL
    if candidate.phone:
        score += W_PHONE
    if candidate.source in ADJACENT_SOURCES:
        score += W_ADJACENT
    if path_has_priority_keyword(page_url, prioritized):
        score += W_PRIORITY_PATH
    if CAMP_DIRECTOR_RE.search(candidate.context or ''):
        score += W_CONTEXT_CAMP_DIRECTOR
    return score


def rank_candidates(candidates: Iterable[Candidate], page_url: str, prioritized: Sequence[str]) -> List[Candidate]:
    """Score copies of the candidates and stable-sort them by confidence (desc)."""
    scored = [
        c.model_copy(update={"confidence": score_candidate(c, page_url, prioritized)})
        for c in candidates
    ]
    return sorted(scored, key=lambda c: c.confidence, reverse=True)
