from __future__ import annotations

import re
from typing import Iterable, List, Optional

from selectolax.parser import HTMLParser, Node

from director_finder.pipeline.extractors import iter_descendants
from director_finder.pipeline.text_utils import dedupe, host_of, normalize_whitespace, registrable_domain
from director_finder.schemas import DirectoryRecord


ROOT_URL = "https://www.summercampdirectories.com/"

# Sibling directory sites (e.g. texassummercamps.com, maine-summercamps.org)
SUBDIRECTORY_HOST_RE = re.compile(r"summercamps\.(com|org)$", re.I)

_SOCIAL_HOSTS = ('facebook.com', 'instagram.com', 'yelp.com', 'twitter.com', 'x.com', 'youtube.com', 'linkedin.com')

_LISTING_MARKER_RE = re.compile(r"(email:|website:)", re.I)
_LABEL_SPLIT_RE = re.compile(r"Ph:|Phone:|Email:|Website:", re.I)
_PHONE_LABEL_RE = re.compile(r"(?:Ph|Phone):\s*(\+?[\d(][\d()\s.\-]{6,}\d)", re.I)
_NAME_TAGS = frozenset({'a', 'strong', 'b'})


def _is_social(href: str) -> bool:
    host = host_of(href)
    return any(host == s or host.endswith('.' + s) for s in _SOCIAL_HOSTS)


def parse_listing_block(block: Node) -> DirectoryRecord:
    """Parse one listing cell: name, website, email, phone and address."""
    text = normalize_whitespace(block.text(separator=' '))

    name_node = next(iter_descendants(block, _NAME_TAGS), None)
    name = normalize_whitespace(name_node.text()) if name_node is not None else ''
    if not name:
        name = text.split(' Ph:')[0].strip()

    website = ''
    for a in block.css('a[href]'):
        href = (a.attributes.get('href') or '').strip()
        if re.match(r'^https?://', href, re.I) and not _is_social(href):
            website = href
            break

    email = ''
    for a in block.css('a[href]'):
        href = (a.attributes.get('href') or '').strip()
        if href.lower().startswith('mailto:'):
            email = href[7:].split('?', 1)[0].strip().lower()
            break

    m = _PHONE_LABEL_RE.search(text)
    phone = m.group(1).strip() if m else ''

    address = _LABEL_SPLIT_RE.split(text)[0].strip()
    if name and address.startswith(name):
        address = address[len(name):].strip(' ,-')

    return DirectoryRecord(name=name, website=website, email=email, phone=phone, address=address)


def _direct_cells(tr: Node) -> List[Node]:
    return [c for c in tr.iter() if (c.tag or '').lower() == 'td']


def extract_listings(parser: HTMLParser) -> List[DirectoryRecord]:
    """Listing rows: a single cell (or the row itself for multi-cell rows) mentioning Email:/Website:."""
    items: List[DirectoryRecord] = []
    for tr in parser.css('table tr'):
        cells = _direct_cells(tr)
        if not cells:
            continue
        cell = cells[0] if len(cells) == 1 else tr
        if not _LISTING_MARKER_RE.search(cell.text(separator=' ') or ''):
            continue
        rec = parse_listing_block(cell)
        if rec.website or rec.email or rec.phone:
            items.append(rec)
    return items


def normalize_record(record: DirectoryRecord) -> DirectoryRecord:
    return record.model_copy(update={"registrable_domain": registrable_domain(host_of(record.website))})


def dedupe_by_domain(records: Iterable[DirectoryRecord]) -> List[DirectoryRecord]:
    """One record per registrable domain (website, then name as fallback keys).

    A later record replaces an earlier one only with a strictly higher
    completeness score (email=3, phone=2, website=1).
    """
    kept: dict[str, DirectoryRecord] = {}
    for r in records:
        key = r.registrable_domain or r.website or r.name
        if not key:
            continue
        prev = kept.get(key)
        if prev is None or r.completeness() > prev.completeness():
            kept[key] = r
    return list(kept.values())


def discover_subdirectories(parser: HTMLParser) -> List[str]:
    """Absolute URLs of sibling directory sites from <select> options and anchors."""
    found: List[str] = []
    for opt in parser.css('select option'):
        found.append(_subdirectory_url(opt.attributes.get('value')))
    for a in parser.css('a[href]'):
        found.append(_subdirectory_url(a.attributes.get('href')))
    return dedupe(found)


def _subdirectory_url(href: Optional[str]) -> Optional[str]:
    h = (href or '').strip()
    if not re.match(r'^https?://', h, re.I):
        return None
    host = host_of(h)
    if SUBDIRECTORY_HOST_RE.search(host):
        return h
    return None
