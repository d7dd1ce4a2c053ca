from __future__ import annotations

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..schemas import Candidate, DomainResult
from .text_utils import filter_emails_to_domain


class DomainStatus(str, Enum):
    SEEDED = "seeded"
    CRAWLING = "crawling"
    FINALIZED = "finalized"


class DomainFinalizedError(RuntimeError):
    """Raised when a page is recorded for a domain whose crawl already completed."""


class DomainState:
    """Accumulates emails/candidates/page counts for one input domain.

    - record_page() is safe to call from concurrent workers (per-domain lock)
    - append-only: nothing is removed once added
    - best_contact() / all_emails() are derived views computed at read time
    """

    def __init__(self, root_domain: str, site_host: str = "") -> None:
        self.root_domain = root_domain
        self.site_host = (site_host or "").lower()
        self.status = DomainStatus.SEEDED
        self.pages_crawled = 0
        self._emails: Dict[str, None] = {}  # insertion-ordered set
        self._candidates: List[Candidate] = []
        self._lock = threading.Lock()

    @property
    def candidates(self) -> List[Candidate]:
        with self._lock:
            return list(self._candidates)

    def record_page(
        self,
        emails: Iterable[str] = (),
        candidates: Iterable[Candidate] = (),
        page_host: Optional[str] = None,
    ) -> None:
        """Count one processed page and fold its emails/candidates into the state.

        Emails are kept only when on the site's registrable domain.
        """
        host = self.site_host or (page_host or "")
        kept = [e.strip().lower() for e in filter_emails_to_domain(emails, host)]
        new_candidates = list(candidates or [])
        with self._lock:
            if self.status is DomainStatus.FINALIZED:
                raise DomainFinalizedError(f"domain already finalized: {self.root_domain}")
            self.status = DomainStatus.CRAWLING
            self.pages_crawled += 1
            for e in kept:
                self._emails.setdefault(e, None)
            self._candidates.extend(new_candidates)

    def finalize(self) -> None:
        with self._lock:
            self.status = DomainStatus.FINALIZED

    def all_emails(self) -> List[str]:
        with self._lock:
            return list(self._emails)

    def best_contact(self) -> Optional[Candidate]:
        return pick_best_candidate(self.candidates)

    def to_result(self, run_at: Optional[datetime] = None) -> DomainResult:
        return DomainResult(
            input_domain=self.root_domain,
            best_contact=self.best_contact(),
            all_emails=self.all_emails(),
            candidates_checked=len(self.candidates),
            pages_crawled=self.pages_crawled,
            run_at=run_at or datetime.now(timezone.utc),
        )


def pick_best_candidate(candidates: Iterable[Candidate]) -> Optional[Candidate]:
    """Strictly highest confidence wins; ties keep the first encountered."""
    best: Optional[Candidate] = None
    for c in candidates or []:
        if best is None or c.confidence > best.confidence:
            best = c
    return best
