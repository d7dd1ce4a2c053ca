from __future__ import annotations

import sys
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from selectolax.parser import HTMLParser

from ..ops_logger import OpsLogger
from ..schemas import CrawlConfig, DomainResult
from .aggregate import DomainState
from .discovery import build_seed_urls, discover_links, normalize_url
from .extractors import CandidateExtractor, extract_page_emails
from .fetchers.static import FetchResult, StaticFetcher
from .text_utils import dedupe, host_of, to_absolute_url


@dataclass
class PageRequest:
    """A queued fetch with its per-request metadata."""
    url: str
    root_domain: str
    depth: int = 0

    @property
    def user_data(self) -> Dict[str, Any]:
        return {"root_domain": self.root_domain, "depth": self.depth}


@dataclass
class PageContext:
    """What the fetch layer hands to the page handler."""
    url: str
    parser: Optional[HTMLParser]
    body: Optional[str]
    content_type: Optional[str]
    user_data: Dict[str, Any] = field(default_factory=dict)


class DomainCrawler:
    """Crawls each input domain for director contacts.

    - Bounded worker pool (config.max_concurrency threads)
    - Per-domain request cap (seeds + discovered) and a global cap
    - Depth-limited, same-domain, keyword-filtered link following
    - One DomainState per input domain; workers append under its lock
    """

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        *,
        fetcher: Optional[StaticFetcher] = None,
        extractor: Optional[CandidateExtractor] = None,
        ops_logger: Optional[OpsLogger] = None,
    ) -> None:
        self.config = config or CrawlConfig()
        self.fetcher = fetcher or StaticFetcher(
            timeout_s=self.config.request_timeout_s,
            respect_robots=self.config.respect_robots,
            max_retries=self.config.max_retries,
            proxy_url=(self.config.proxy_url if self.config.use_proxy else None),
        )
        self.extractor = extractor or CandidateExtractor(self.config.prioritized_keywords)
        self.ops_logger = ops_logger
        self.states: Dict[str, DomainState] = {}
        self._seen: set[str] = set()
        self._requests_per_domain: Dict[str, int] = {}
        self._total_requests = 0
        self._global_cap = 0
        self._admit_lock = threading.Lock()

    # -------------------------
    # Frontier
    # -------------------------
    def _admit(self, url: str, root_domain: str) -> bool:
        """Reserve a request slot for url if it is new and within both caps."""
        nu = normalize_url(url)
        with self._admit_lock:
            if nu in self._seen:
                return False
            if self._requests_per_domain.get(root_domain, 0) >= self.config.max_requests_per_domain:
                return False
            if self._total_requests >= self._global_cap:
                return False
            self._seen.add(nu)
            self._requests_per_domain[root_domain] = self._requests_per_domain.get(root_domain, 0) + 1
            self._total_requests += 1
            return True

    def seed_requests(self, domain: str) -> List[PageRequest]:
        seeds = build_seed_urls(domain, self.config.page_keywords)
        out: List[PageRequest] = []
        for url in seeds[: self.config.max_requests_per_domain]:
            if self._admit(url, domain):
                out.append(PageRequest(url=url, root_domain=domain, depth=0))
        return out

    # -------------------------
    # Page handling
    # -------------------------
    def handle_page(self, ctx: PageContext) -> List[PageRequest]:
        """Extract from one fetched page into its DomainState; return links to enqueue."""
        root_domain = ctx.user_data.get("root_domain")
        depth = int(ctx.user_data.get("depth", 0))
        state = self.states.get(root_domain)
        if state is None:
            return []

        page_host = host_of(ctx.url)
        if not ctx.content_type or 'text' not in ctx.content_type or not ctx.body:
            state.record_page(page_host=page_host)
            return []

        emails: List[str] = []
        candidates = []
        parser = ctx.parser
        try:
            if parser is None:
                parser = HTMLParser(ctx.body)
            emails = extract_page_emails(ctx.body, parser)
            candidates = self.extractor.extract(parser, ctx.url, page_host)
        except Exception as e:
            print(f"  ⚠️  page processing failed for {ctx.url}: {e}", file=sys.stderr)
            emails, candidates = [], []
        state.record_page(emails=emails, candidates=candidates, page_host=page_host)

        if depth >= self.config.max_depth or parser is None:
            return []
        links = discover_links(ctx.url, parser, root_domain, self.config.page_keywords)
        return [PageRequest(url=u, root_domain=root_domain, depth=depth + 1) for u in links]

    def _process(self, req: PageRequest) -> List[PageRequest]:
        t0 = time.perf_counter()
        status = 0
        outcome = "ok"
        next_requests: List[PageRequest] = []
        try:
            res: FetchResult = self.fetcher.fetch(req.url, user_data=req.user_data)
            status = res.status_code
            if res.blocked_by_robots:
                outcome = "robots"
            elif res.status_code >= 400:
                outcome = f"http_{res.status_code}"
            else:
                next_requests = self.handle_page(PageContext(
                    url=res.url,
                    parser=HTMLParser(res.html) if res.html else None,
                    body=res.html,
                    content_type=res.mime,
                    user_data=req.user_data,
                ))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            outcome = "fetch_error"
            print(f"  ⚠️  fetch failed: {req.url}: {e}", file=sys.stderr)
        self._emit_page_log(req, status, outcome, len(next_requests), time.perf_counter() - t0)
        return next_requests

    def _emit_page_log(self, req: PageRequest, status: int, outcome: str, enqueued: int, duration_s: float) -> None:
        if self.ops_logger is None:
            return
        state = self.states.get(req.root_domain)
        self.ops_logger.emit({
            "dcf_ops": 1,
            "url": req.url,
            "domain": req.root_domain,
            "depth": req.depth,
            "status_code": status,
            "outcome": outcome,
            "enqueued": enqueued,
            "pages_crawled": state.pages_crawled if state else 0,
            "candidates_total": len(state.candidates) if state else 0,
            "emails_total": len(state.all_emails()) if state else 0,
            "duration_s": round(duration_s, 4),
        })

    # -------------------------
    # Run
    # -------------------------
    def crawl(self, domains: List[str]) -> List[DomainResult]:
        """Crawl all domains and return one DomainResult per (deduplicated) input domain."""
        domains = dedupe(domains)
        self._global_cap = self.config.global_request_cap(len(domains))
        initial: List[PageRequest] = []
        for d in domains:
            site_host = host_of(to_absolute_url(d))
            self.states[d] = DomainState(d, site_host)
            if not site_host:
                print(f"  ⚠️  Skipped invalid domain: {d!r}", file=sys.stderr)
                continue
            initial.extend(self.seed_requests(d))

        print(f"Starting crawl for {len(domains)} domain(s), {len(initial)} seed request(s).")
        with ThreadPoolExecutor(max_workers=self.config.max_concurrency) as pool:
            pending: Dict[Future, PageRequest] = {pool.submit(self._process, r): r for r in initial}
            while pending:
                done, _ = wait(list(pending), return_when=FIRST_COMPLETED)
                for fut in done:
                    pending.pop(fut)
                    for nxt in fut.result():
                        if self._admit(nxt.url, nxt.root_domain):
                            pending[pool.submit(self._process, nxt)] = nxt

        run_at = datetime.now(timezone.utc)
        results: List[DomainResult] = []
        for d in domains:
            state = self.states[d]
            state.finalize()
            results.append(state.to_result(run_at=run_at))
        return results

    def close(self) -> None:
        self.fetcher.close()
