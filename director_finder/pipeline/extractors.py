"""
Director Candidate Extraction - Names, Titles, Emails and Phones

Walks a statically parsed page (selectolax), finds text blocks that mention a
director title, locates a personal name near each mention and attaches the
block's on-domain email and phone.

Name strategies (first non-empty wins):
- adjacent "Name - Title" / "Title: Name" patterns inside the block
- windowed proximity around the title keyword (block, then siblings)
- container scan of headings/emphasis/links/img alt in up to two ancestors
- first name derived from an on-domain email, completed by a nearby surname

When no block yields a candidate, the whole page text is scanned and every
on-domain mailto link is paired with the nearest name in its container.
"""

import re
import sys
from typing import Iterable, Iterator, List, Optional, Sequence

from selectolax.parser import HTMLParser, Node

from ..schemas import Candidate
from .patterns import (
    SOURCE_CONTAINER,
    SOURCE_MAILTO_PAIR,
    SOURCE_PAGE_SCAN,
    NameMatch,
    find_names,
    find_names_around_title,
    find_names_from_email,
    find_title,
    first_non_empty,
    has_title_keyword,
    parse_adjacent_patterns,
    title_window,
)
from .scoring import rank_candidates
from .text_utils import (
    EMAIL_RE,
    dedupe,
    email_is_on_domain,
    first_phone_in,
    host_of,
    normalize_phone,
    normalize_whitespace,
)


BLOCK_TAGS = frozenset({'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'p', 'li', 'td', 'div', 'section', 'article', 'strong'})
CONTAINER_NAME_TAGS = frozenset({'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'strong', 'b', 'em', 'a'})

_NAV_TAGS = {'nav', 'header', 'footer'}
_NAV_CLASS_RE = re.compile(r"\b(nav|menu|header|footer)\b")

DEFAULT_TITLE = 'Camp Director'
UNKNOWN_TITLE = 'Unknown'


def _is_element(node: Optional[Node]) -> bool:
    if node is None:
        return False
    tag = node.tag or ''
    return bool(tag) and tag[0].isalpha()


def _node_text(node: Optional[Node]) -> str:
    if node is None:
        return ''
    return normalize_whitespace(node.text(separator=' '))


def _element_sibling(node: Node, forward: bool) -> Optional[Node]:
    cur = node.next if forward else node.prev
    while cur is not None and not _is_element(cur):
        cur = cur.next if forward else cur.prev
    return cur


def iter_descendants(node: Optional[Node], tags: Optional[frozenset] = None) -> Iterator[Node]:
    """Element descendants of node in document order, optionally limited to tag names."""
    if node is None:
        return
    # explicit stack: deeply nested markup must not hit the recursion limit
    stack = list(node.iter())
    stack.reverse()
    while stack:
        child = stack.pop()
        if tags is None or (child.tag or '').lower() in tags:
            yield child
        children = list(child.iter())
        children.reverse()
        stack.extend(children)


def _mailto_address(href: str, fallback_text: Optional[str] = None) -> Optional[str]:
    raw = href.strip()
    if raw.lower().startswith('mailto:'):
        raw = raw[7:]
    raw = raw.split('?', 1)[0].strip()
    m = EMAIL_RE.search(raw) or EMAIL_RE.search(fallback_text or '')
    return m.group(0).lower() if m else None


def _mailto_links(scope) -> List[tuple]:
    """(anchor, email) for every mailto anchor under scope, in document order."""
    out = []
    for a in scope.css('a[href]'):
        href = (a.attributes.get('href') or '').strip()
        if not href.lower().startswith('mailto:'):
            continue
        email = _mailto_address(href, a.text())
        if email:
            out.append((a, email))
    return out


def is_inside_nav_or_footer(node: Node, max_levels: int = 6) -> bool:
    """True if node or one of its close ancestors is page navigation/header/footer."""
    cur = node
    for _ in range(max_levels):
        if not _is_element(cur):
            break
        if (cur.tag or '').lower() in _NAV_TAGS:
            return True
        cls = (cur.attributes.get('class') or '').lower()
        if cls and _NAV_CLASS_RE.search(cls):
            return True
        cur = cur.parent
    return False


def extract_page_emails(html: Optional[str], parser: Optional[HTMLParser] = None) -> List[str]:
    """Every mailto address plus every email-looking string in the raw HTML (lowercased, deduped)."""
    found: List[str] = []
    if parser is not None:
        found.extend(email for _, email in _mailto_links(parser))
    found.extend(m.group(0).lower() for m in EMAIL_RE.finditer(html or ''))
    return dedupe(found)


def dedupe_candidates(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Keep the first candidate per (full_name, title, email), case-insensitive."""
    keyed: dict[tuple, Candidate] = {}
    for c in candidates:
        key = (c.full_name.lower(), (c.title or '').lower(), (c.email or '').lower())
        if key not in keyed:
            keyed[key] = c
    return list(keyed.values())


class CandidateExtractor:
    """
    Extracts director candidates from static HTML pages.

    Stateless per call: the same instance can serve concurrent workers.
    """

    def __init__(self, prioritized_keywords: Optional[Sequence[str]] = None):
        """
        Args:
            prioritized_keywords: URL path keywords that bias scoring
        """
        self.prioritized_keywords = [k.lower() for k in (prioritized_keywords or [])]

    def extract_from_static_html(self, html: str, source_url: str, site_host: Optional[str] = None) -> List[Candidate]:
        return self.extract(HTMLParser(html or ''), source_url, site_host)

    def extract(self, parser: HTMLParser, source_url: str, site_host: Optional[str] = None) -> List[Candidate]:
        """
        Extract ranked, deduplicated candidates from a parsed page.

        Args:
            parser: Parsed page
            source_url: URL the page was fetched from
            site_host: Hostname of the crawled site (defaults to the page host)

        Returns:
            Candidates sorted by confidence (desc); [] on any failure
        """
        host = site_host or host_of(source_url)
        if not host:
            return []
        try:
            candidates = self._extract_from_blocks(parser, source_url, host)
            if not candidates:
                candidates = self._extract_from_page_text(parser, source_url)
                candidates.extend(self._pair_mailto_links(parser, source_url, host))
            return rank_candidates(dedupe_candidates(candidates), source_url, self.prioritized_keywords)
        except Exception as e:
            print(f"  ⚠️  extraction failed for {source_url}: {e}", file=sys.stderr)
            return []

    # -------------------------
    # Block pass
    # -------------------------
    def _extract_from_blocks(self, parser: HTMLParser, source_url: str, host: str) -> List[Candidate]:
        candidates: List[Candidate] = []
        for node in iter_descendants(parser.root, BLOCK_TAGS):
            text = _node_text(node)
            if not has_title_keyword(text):
                continue
            if is_inside_nav_or_footer(node):
                continue

            email = self._block_email(node, host)
            names = first_non_empty([
                lambda: parse_adjacent_patterns(text),
                lambda: self._proximity_names(node, text),
                lambda: self._container_names(node),
                lambda: self._email_names(node, text, email),
            ])
            if not names:
                continue

            phone = self._block_phone(node)
            title = find_title(text) or DEFAULT_TITLE
            for n in names:
                candidates.append(self._make_candidate(n, email, phone, title, source_url, text))
        return candidates

    def _proximity_names(self, node: Node, text: str) -> List[NameMatch]:
        names = find_names_around_title(text)
        if names:
            return names
        for sibling in (_element_sibling(node, forward=False), _element_sibling(node, forward=True)):
            if sibling is not None:
                names.extend(find_names_around_title(_node_text(sibling)))
        return names

    def _container_names(self, node: Node, levels: int = 2) -> List[NameMatch]:
        """Staff-card layouts: name and title are sibling elements under a shared container."""
        ancestor = node.parent
        for _ in range(levels):
            if not _is_element(ancestor) or ancestor.tag in ('body', 'html'):
                break
            names: List[NameMatch] = []
            for el in iter_descendants(ancestor, CONTAINER_NAME_TAGS):
                if is_inside_nav_or_footer(el):
                    continue
                names.extend(find_names(_node_text(el), SOURCE_CONTAINER))
            for img in ancestor.css('img'):
                alt = img.attributes.get('alt') or ''
                names.extend(find_names(normalize_whitespace(alt), SOURCE_CONTAINER))
            if names:
                return names
            ancestor = ancestor.parent
        return []

    def _email_names(self, node: Node, text: str, email: Optional[str]) -> List[NameMatch]:
        if not email:
            return []
        surrounding = text
        if _is_element(node.parent):
            surrounding = f"{text} {_node_text(node.parent)}"
        return find_names_from_email(email, surrounding)

    def _block_email(self, node: Node, host: str) -> Optional[str]:
        links = _mailto_links(node)
        if links:
            email = links[0][1]
        else:
            m = EMAIL_RE.search(node.html or '')
            email = m.group(0).lower() if m else None
        if email and not email_is_on_domain(email, host):
            return None
        return email

    def _block_phone(self, node: Node) -> Optional[str]:
        for scope in (node, node.parent):
            if not _is_element(scope):
                continue
            for a in scope.css('a[href]'):
                href = (a.attributes.get('href') or '').strip()
                if href.lower().startswith('tel:'):
                    phone = normalize_phone(href[4:])
                    if phone:
                        return phone
            phone = first_phone_in(_node_text(scope)) or first_phone_in(scope.html)
            if phone:
                return phone
        return None

    # -------------------------
    # Whole-page fallbacks
    # -------------------------
    def _extract_from_page_text(self, parser: HTMLParser, source_url: str) -> List[Candidate]:
        body = parser.body or parser.root
        full_text = _node_text(body)
        if not has_title_keyword(full_text):
            return []
        names = first_non_empty([
            lambda: parse_adjacent_patterns(full_text),
            lambda: find_names_around_title(full_text, SOURCE_PAGE_SCAN),
        ])
        title = find_title(full_text) or DEFAULT_TITLE
        context = title_window(full_text)
        return [self._make_candidate(n, None, None, title, source_url, context) for n in names]

    def _pair_mailto_links(self, parser: HTMLParser, source_url: str, host: str, levels: int = 3) -> List[Candidate]:
        """Pair each on-domain mailto with the nearest plausible name in its closest container.

        No title keyword is required here; the title falls back to 'Unknown'.
        """
        out: List[Candidate] = []
        for anchor, email in _mailto_links(parser):
            if not email_is_on_domain(email, host):
                continue
            anchor_text = _node_text(anchor)
            container = anchor.parent
            for _ in range(levels):
                if not _is_element(container) or container.tag in ('body', 'html'):
                    break
                ctext = _node_text(container)
                name = self._nearest_name(ctext, anchor_text or email)
                if name is not None:
                    title = find_title(ctext) or UNKNOWN_TITLE
                    phone = self._block_phone(container)
                    out.append(self._make_candidate(name, email, phone, title, source_url, ctext))
                    break
                container = container.parent
        return out

    def _nearest_name(self, text: str, anchor_text: str) -> Optional[NameMatch]:
        names = find_names(text, SOURCE_MAILTO_PAIR)
        if not names:
            return None
        anchor_pos = text.find(anchor_text) if anchor_text else -1
        if anchor_pos < 0:
            return names[0]
        return min(names, key=lambda n: abs(text.find(n.full_name) - anchor_pos))

    def _make_candidate(
        self,
        name: NameMatch,
        email: Optional[str],
        phone: Optional[str],
        title: str,
        source_url: str,
        context: str,
    ) -> Candidate:
        return Candidate(
            full_name=name.full_name,
            first_name=name.first_name,
            last_name=name.last_name,
            email=email,
            phone=phone,
            title=title,
            page_url=source_url,
            context=context[:240],
            source=name.source,
        )
