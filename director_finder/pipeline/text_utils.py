from __future__ import annotations

import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse


EMAIL_RE = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.I)

# US-style numbers: optional country code, optional parens/separators
PHONE_RE = re.compile(r"(?:\+?1[\s.\-]?)?\(?\d{3}\)?[\s.\-]?\d{3}[\s.\-]?\d{4}")

_WS_RE = re.compile(r"\s+")
_BAD_HOST_CHAR_RE = re.compile(r"[\x00-\x20\x7f]")


def normalize_whitespace(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WS_RE.sub(" ", str(text)).strip()


def registrable_domain(host: Optional[str]) -> str:
    """Last two DNS labels of a hostname.

    Naive on purpose: no public-suffix list, so ``example.co.uk`` becomes
    ``co.uk``.
    """
    if not host:
        return ""
    parts = [p for p in str(host).strip().lower().split('.') if p]
    if len(parts) <= 2:
        return '.'.join(parts)
    return '.'.join(parts[-2:])


def host_of(url: Optional[str]) -> str:
    """Lowercased hostname of a URL, or '' when it cannot be parsed.

    A non-numeric or out-of-range port, or a host with whitespace or control
    characters, counts as unparseable.
    """
    if not url:
        return ""
    try:
        parsed = urlparse(str(url))
        parsed.port  # raises ValueError for a bad port
    except ValueError:
        return ""
    host = (parsed.hostname or "").lower()
    if _BAD_HOST_CHAR_RE.search(host):
        return ""
    return host


def to_absolute_url(value: Optional[str]) -> Optional[str]:
    """Coerce a domain or URL into an absolute http(s) URL.

    - ``example.org`` -> ``https://example.org``
    - anything that still has no hostname -> None
    """
    s = (value or "").strip()
    if not s:
        return None
    if not re.match(r"^https?://", s, re.I):
        s = "https://" + re.sub(r"^[a-z]+://", "", s, flags=re.I)
    host = host_of(s)
    if not host or '.' not in host or ' ' in host:
        return None
    return s


def email_is_on_domain(email: Optional[str], site_host: Optional[str]) -> bool:
    e = str(email or '').strip().lower()
    if '@' not in e:
        return False
    host = e.split('@', 1)[1]
    if not host:
        return False
    return registrable_domain(host) == registrable_domain(site_host)


def filter_emails_to_domain(emails: Iterable[str], site_host: Optional[str]) -> List[str]:
    return [e for e in (emails or []) if email_is_on_domain(e, site_host)]


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """Format a US phone number or return None.

    10 digits -> ``(AAA) BBB-CCCC``; 11 digits with leading 1 ->
    ``+1 (AAA) BBB-CCCC``. Any other length yields None.
    """
    digits = re.sub(r"\D", "", str(raw or ""))
    if len(digits) == 11 and digits.startswith('1'):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[0:3]}) {digits[3:6]}-{digits[6:]}"
    return None


def first_phone_in(text: Optional[str]) -> Optional[str]:
    """First regex phone match in text that normalizes cleanly."""
    for m in PHONE_RE.finditer(text or ""):
        phone = normalize_phone(m.group(0))
        if phone:
            return phone
    return None


def dedupe(values: Iterable[Optional[str]]) -> List[str]:
    """Drop blank entries and repeat strings (after trim), keeping first occurrence order."""
    out: List[str] = []
    seen: set[str] = set()
    for v in values or []:
        if not v:
            continue
        s = str(v).strip()
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return out
