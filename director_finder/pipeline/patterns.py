from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence


# Director title keywords (case-insensitive). 'director of ...' swallows up to 60 chars of the role.
TITLE_RE = re.compile(
    r"\b(camp\s*director|executive\s*director|program\s*director|director\s+of\s+[^\n<]{0,60}|site\s*director)\b",
    re.I,
)

# Titles allowed in the adjacent "Name - Title" / "Title - Name" forms
_ADJ_TITLE = r"(?i:camp\s*director|executive\s*director|program\s*director|site\s*director)"

# Capitalized word, optionally hyphenated/apostrophized (Mary-Kate, Smith-Jones)
_NAME_TOKEN = r"[A-Z][a-z]+(?:[-'][A-Z][a-z]+)?"

NAME_RE = re.compile(rf"\b({_NAME_TOKEN})\s+({_NAME_TOKEN})\b")

_SEP = r"\s*[–—\-:,]+\s*"

NAME_THEN_TITLE_RE = re.compile(rf"\b({_NAME_TOKEN}\s+{_NAME_TOKEN}){_SEP}({_ADJ_TITLE})")
TITLE_THEN_NAME_RE = re.compile(rf"({_ADJ_TITLE}){_SEP}({_NAME_TOKEN}\s+{_NAME_TOKEN})")

CAMP_DIRECTOR_RE = re.compile(r"camp\s*director", re.I)

# Page-furniture words that look like capitalized names in menus and banners
STOPWORD_TOKENS = frozenset({
    'at', 'camp', 'high', 'adventure', 'base', 'staff', 'employment', 'register', 'today', 'only',
    'program', 'areas', 'photo', 'journal', 'leadership', 'who', 'we', 'are', 'about', 'contact',
    'team', 'jobs', 'directory', 'more', 'info', 'request', 'welcome', 'located', 'looking', 'week',
    'protected', 'policy', 'terms', 'service', 'privacy', 'apply', 'send', 'name', 'email', 'please',
    'know', 'when', 'submitting', 'submit', 'format', 'different', 'day', 'city', 'state', 'council',
    'road', 'basecamp', 'registering', 'account', 'sign', 'signin', 'signout', 'home',
    # title words and headings around staff sections
    'director', 'directors', 'executive', 'site', 'our', 'meet', 'the', 'summer',
})

BOILERPLATE_RE = re.compile(r"high adventure|photo journal|register|employment|only at|request more info")

SOURCE_NAME_THEN_TITLE = 'name-then-title'
SOURCE_TITLE_THEN_NAME = 'title-then-name'
SOURCE_PROXIMITY = 'proximity'
SOURCE_CONTAINER = 'container'
SOURCE_EMAIL_DERIVED = 'email-derived'
SOURCE_PAGE_SCAN = 'page-scan'
SOURCE_MAILTO_PAIR = 'mailto-pair'

ADJACENT_SOURCES = frozenset({SOURCE_NAME_THEN_TITLE, SOURCE_TITLE_THEN_NAME})

WINDOW_BEFORE = 80
WINDOW_AFTER = 160


@dataclass(frozen=True)
class NameMatch:
    first_name: str
    last_name: str
    source: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


def is_plausible_name(first: Optional[str], last: Optional[str]) -> bool:
    if not first or not last:
        return False
    f = first.lower()
    l = last.lower()
    if f in STOPWORD_TOKENS or l in STOPWORD_TOKENS:
        return False
    if len(f) < 2 or len(l) < 2:
        return False
    if BOILERPLATE_RE.search(f"{f} {l}"):
        return False
    return True


def has_title_keyword(text: Optional[str]) -> bool:
    return bool(text) and TITLE_RE.search(text) is not None


def find_title(text: Optional[str]) -> Optional[str]:
    m = TITLE_RE.search(text or "")
    return m.group(0).strip() if m else None


def find_names(text: Optional[str], source: str = SOURCE_PROXIMITY) -> List[NameMatch]:
    """All plausible two-token names in text.

    A rejected pair resumes the scan at its second token, so "Contact Jane Doe"
    still yields "Jane Doe".
    """
    out: List[NameMatch] = []
    if not text:
        return out
    pos = 0
    while True:
        m = NAME_RE.search(text, pos)
        if m is None:
            break
        if is_plausible_name(m.group(1), m.group(2)):
            out.append(NameMatch(m.group(1), m.group(2), source))
            pos = m.end()
        else:
            pos = m.start(2)
    return out


def parse_adjacent_patterns(text: Optional[str]) -> List[NameMatch]:
    """Names written directly next to a title: "Jane Doe - Camp Director" or "Camp Director: Jane Doe"."""
    out: List[NameMatch] = []
    if not text:
        return out
    for m in NAME_THEN_TITLE_RE.finditer(text):
        parts = m.group(1).split()
        if is_plausible_name(parts[0], parts[1]):
            out.append(NameMatch(parts[0], parts[1], SOURCE_NAME_THEN_TITLE))
    for m in TITLE_THEN_NAME_RE.finditer(text):
        parts = m.group(2).split()
        if is_plausible_name(parts[0], parts[1]):
            out.append(NameMatch(parts[0], parts[1], SOURCE_TITLE_THEN_NAME))
    return out


def find_names_around_title(text: Optional[str], source: str = SOURCE_PROXIMITY) -> List[NameMatch]:
    """Names within 80 chars before / 160 chars after each title keyword."""
    out: List[NameMatch] = []
    if not text:
        return out
    for m in TITLE_RE.finditer(text):
        start = max(0, m.start() - WINDOW_BEFORE)
        end = min(len(text), m.end() + WINDOW_AFTER)
        out.extend(find_names(text[start:end], source))
    return out


def title_window(text: str) -> str:
    """Text surrounding the first title keyword (used as context for whole-page matches)."""
    m = TITLE_RE.search(text or "")
    if not m:
        return (text or "")[:240]
    start = max(0, m.start() - WINDOW_BEFORE)
    return text[start:m.end() + WINDOW_AFTER]


_EMAIL_PREFIX_RE = re.compile(r"^([a-z]{2,})", re.I)


def first_name_from_email(email: Optional[str]) -> Optional[str]:
    """Local-part prefix before any digit or separator: 'jane.doe7@x.org' -> 'jane'."""
    local = (email or '').split('@', 1)[0]
    m = _EMAIL_PREFIX_RE.match(local)
    if not m:
        return None
    return m.group(1)


def find_names_from_email(email: Optional[str], text: Optional[str]) -> List[NameMatch]:
    """Match the email-derived first name followed by a capitalized surname in text."""
    first = first_name_from_email(email)
    if not first or not text:
        return []
    pat = re.compile(rf"\b((?i:{re.escape(first)}))\s+({_NAME_TOKEN})\b")
    out: List[NameMatch] = []
    for m in pat.finditer(text):
        found_first = m.group(1)
        # Names are capitalized; "jane" in running text is not a name
        if not found_first[0].isupper():
            continue
        if is_plausible_name(found_first, m.group(2)):
            out.append(NameMatch(found_first, m.group(2), SOURCE_EMAIL_DERIVED))
            break
    return out


Strategy = Callable[[], Sequence[NameMatch]]


def first_non_empty(strategies: Iterable[Strategy]) -> List[NameMatch]:
    """Run strategies in order and return the first non-empty result (later ones never run)."""
    for strategy in strategies:
        found = strategy()
        if found:
            return list(found)
    return []
