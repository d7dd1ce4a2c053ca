from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib import robotparser
from urllib.parse import urlparse

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential


DEFAULT_UA = "DCF-StaticFetcher/0.1 (+https://example.com)"


@dataclass(frozen=True)
class FetchResult:
    url: str
    status_code: int
    mime: str | None
    content_length: int
    html: str | None
    headers: dict[str, str]
    blocked_by_robots: bool = False
    user_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_text(self) -> bool:
        return bool(self.mime) and 'text' in self.mime


class StaticFetcher:
    """Static HTML fetcher with robots.txt enforcement, retries and optional proxy.

    - Uses httpx for network IO (one shared client; safe across worker threads)
    - Retries transport errors with exponential backoff (tenacity)
    - Caches robots.txt per host
    - Does NOT execute JavaScript
    """

    def __init__(
        self,
        *,
        timeout_s: float = 12.0,
        user_agent: str = DEFAULT_UA,
        respect_robots: bool = True,
        max_retries: int = 2,
        backoff_s: float = 1.0,
        proxy_url: Optional[str] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.respect_robots = respect_robots
        self.max_retries = max(0, int(max_retries))
        self.backoff_s = max(0.0, float(backoff_s))
        self.proxy_url = proxy_url
        self._client = httpx.Client(
            timeout=self.timeout_s,
            headers={"User-Agent": self.user_agent},
            proxy=proxy_url,
        )
        self._robots: Dict[str, Optional[robotparser.RobotFileParser]] = {}
        self._robots_lock = threading.Lock()

    def close(self) -> None:
        self._client.close()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff_s, min=0, max=max(self.backoff_s * 8, 0)),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )

    def _get(self, url: str, **kwargs) -> httpx.Response:
        for attempt in self._retrying():
            with attempt:
                return self._client.get(url, **kwargs)
        raise RuntimeError("unreachable")  # pragma: no cover

    def _robots_for(self, scheme: str, netloc: str) -> Optional[robotparser.RobotFileParser]:
        key = f"{scheme}://{netloc}"
        with self._robots_lock:
            if key in self._robots:
                return self._robots[key]
        rp: Optional[robotparser.RobotFileParser] = None
        try:
            resp = self._client.get(f"{key}/robots.txt")
            if resp.status_code < 400:
                rp = robotparser.RobotFileParser()
                rp.parse(resp.text.splitlines())
        except httpx.HTTPError:
            # Unreachable robots.txt: allow
            rp = None
        with self._robots_lock:
            self._robots[key] = rp
        return rp

    def _robots_allows(self, url: str) -> bool:
        if not self.respect_robots:
            return True
        parsed = urlparse(url)
        rp = self._robots_for(parsed.scheme, parsed.netloc)
        if rp is None:
            return True
        # Try with our UA, else fallback to '*'
        return rp.can_fetch(self.user_agent, url) and rp.can_fetch("*", url)

    def fetch(self, url: str, user_data: Optional[Dict[str, Any]] = None) -> FetchResult:
        meta = dict(user_data or {})
        if not self._robots_allows(url):
            return FetchResult(
                url=url,
                status_code=0,
                mime=None,
                content_length=0,
                html=None,
                headers={},
                blocked_by_robots=True,
                user_data=meta,
            )
        resp = self._get(url, follow_redirects=True)
        mime = resp.headers.get("Content-Type")
        mime_main = None
        if mime:
            mime_main = mime.split(";")[0].strip().lower()
        html_text = None
        if mime_main and mime_main.startswith("text/"):
            html_text = resp.text
        return FetchResult(
            url=str(resp.request.url),
            status_code=resp.status_code,
            mime=mime_main,
            content_length=len(resp.content or b""),
            html=html_text,
            headers={k: v for k, v in resp.headers.items()},
            user_data=meta,
        )
