"""
Seed URL construction and same-domain link discovery.

Seeds cover the usual contact/about/staff paths plus one path per prioritized
keyword. Discovered links are followed only when they stay on the input
domain and their path mentions a prioritized keyword.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set
from urllib.parse import urljoin, urlparse, urlunparse

from selectolax.parser import HTMLParser

from .text_utils import dedupe, host_of, to_absolute_url


SEED_PATHS = [
    '',
    '/contact', '/contact-us', '/contactus',
    '/about', '/about-us', '/who-we-are', '/our-story', '/our-mission',
    '/staff', '/our-staff', '/staff-directory', '/staff-list', '/meet-our-staff',
    '/team', '/our-team', '/meet-the-team', '/leadership-team', '/executive-team',
    '/leadership', '/administration', '/administrative-staff', '/faculty',
    '/directory', '/people', '/board', '/board-of-directors',
    '/employment', '/jobs', '/careers', '/join-our-team',
    '/camp-director', '/program-director', '/site-director', '/directors',
]


def _bare_host(host: str) -> str:
    h = (host or '').lower()
    return h[4:] if h.startswith('www.') else h


def keyword_slug(keyword: str) -> str:
    return '-'.join((keyword or '').strip().lower().split())


def build_seed_urls(domain: str, keywords: Sequence[str] = ()) -> List[str]:
    """Root URL, the common contact/staff paths and one path per keyword slug."""
    base = to_absolute_url(domain)
    if not base:
        return []
    base = base.rstrip('/')
    seeds = [f"{base}{p}" for p in SEED_PATHS]
    seeds.extend(f"{base}/{keyword_slug(k)}" for k in (keywords or []) if keyword_slug(k))
    return dedupe(seeds)


def is_same_domain(url: str, domain: str) -> bool:
    """Same host as the input domain, ignoring a leading 'www.'."""
    a = _bare_host(host_of(url))
    b = _bare_host(host_of(to_absolute_url(domain)))
    return bool(a) and a == b


def normalize_url(u: str) -> str:
    """Lowercase host, drop query/fragment, trim trailing slash (except root)."""
    try:
        p = urlparse(u)
        netloc = (p.netloc or '').lower()
        path = p.path or ''
        if path.endswith('/') and path != '/':
            path = path.rstrip('/')
        return urlunparse(p._replace(netloc=netloc, path=path, query='', fragment=''))
    except ValueError:
        return u


def path_matches_keywords(url: str, keywords: Sequence[str]) -> bool:
    try:
        path = (urlparse(url).path or '').lower()
    except ValueError:
        return False
    return any(slug and slug in path for slug in (keyword_slug(k) for k in keywords or []))


def discover_links(
    base_url: str,
    parser: HTMLParser,
    root_domain: str,
    keywords: Sequence[str],
    max_links: Optional[int] = None,
) -> List[str]:
    """Same-domain anchors whose path mentions a prioritized keyword."""
    out: List[str] = []
    seen: Set[str] = set()
    for a in parser.css("a[href]"):
        href = (a.attributes.get("href") or "").strip()
        if not href or href.startswith('#'):
            continue
        if href.lower().startswith(('mailto:', 'tel:', 'javascript:')):
            continue
        abs_url = urljoin(base_url, href)
        if not abs_url.startswith(('http://', 'https://')):
            continue
        if not is_same_domain(abs_url, root_domain):
            continue
        if not path_matches_keywords(abs_url, keywords):
            continue
        nu = normalize_url(abs_url)
        if nu not in seen:
            seen.add(nu)
            out.append(nu)
        if max_links is not None and len(out) >= max_links:
            break
    return out
