"""
Camp Director Finder - Pydantic Data Schemas

Core data models for director candidates, per-domain results, directory
listing records and crawl configuration. Field names are snake_case in
Python and camelCase on the wire (JSONL/dataset output and input documents).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_PAGE_KEYWORDS: List[str] = [
    'contact', 'contact-us', 'contactus', 'about', 'about-us', 'who we are', 'our story', 'our mission',
    'staff', 'our staff', 'staff directory', 'staff list', 'meet our staff',
    'team', 'our team', 'meet the team', 'leadership team', 'executive team',
    'leadership', 'administration', 'administrative staff', 'faculty',
    'directory', 'people', 'board', 'board of directors',
    'employment', 'jobs', 'careers', 'join our team',
    'camp director', 'program director', 'site director', 'directors',
]


class Candidate(BaseModel):
    """
    A single (name, title, contact-info) hypothesis extracted from one page.

    Frozen: scoring and deduplication produce copies via ``model_copy``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    full_name: str = Field(..., description="First and last name as found on the page")
    first_name: str = Field(..., description="First name token")
    last_name: str = Field(..., description="Last name token")
    email: Optional[str] = Field(default=None, description="On-domain email attached to the block")
    phone: Optional[str] = Field(default=None, description="Normalized US phone number")
    title: str = Field(..., description="Matched director title keyword")
    page_url: str = Field(..., description="Page where the candidate was found")
    context: str = Field(default="", description="Up to 240 chars of surrounding text")
    confidence: int = Field(default=0, description="Additive confidence score")
    source: str = Field(..., description="Strategy tag that produced the name")

    @field_validator('context')
    @classmethod
    def truncate_context(cls, v):
        return (v or '')[:240]

    @field_validator('email')
    @classmethod
    def lower_email(cls, v):
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class DomainResult(BaseModel):
    """Final per-domain output record (one per input domain)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_domain: str
    best_contact: Optional[Candidate] = None
    all_emails: List[str] = Field(default_factory=list)
    candidates_checked: int = 0
    pages_crawled: int = 0
    run_at: datetime

    def to_record(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode='json', by_alias=True)


class DirectoryRecord(BaseModel):
    """Contact row harvested from a camp listing directory."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    website: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    registrable_domain: str = ""
    source_directory: str = ""

    def completeness(self) -> int:
        return (3 if self.email else 0) + (2 if self.phone else 0) + (1 if self.website else 0)


class CrawlConfig(BaseModel):
    """
    Per-run crawl configuration.

    Accepts both snake_case keys (YAML config) and the camelCase keys of the
    JSON input document (``maxDepth``, ``pageKeywords``, ...).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    max_depth: int = Field(default=2, ge=0, description="Link-following recursion limit")
    max_requests_per_domain: int = Field(default=30, ge=1, description="Cap on seed + discovered requests")
    page_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_PAGE_KEYWORDS))
    use_proxy: bool = Field(default=False, alias='useApifyProxy')
    proxy_url: Optional[str] = None
    max_concurrency: int = Field(default=8, ge=1, le=64)
    request_timeout_s: float = Field(default=12.0, gt=0)
    max_retries: int = Field(default=2, ge=0)
    respect_robots: bool = True

    @field_validator('page_keywords')
    @classmethod
    def keywords_or_default(cls, v):
        """Empty keyword lists fall back to the defaults; entries are trimmed and deduped."""
        seen: List[str] = []
        for k in v or []:
            s = str(k).strip()
            if s and s not in seen:
                seen.append(s)
        return seen or list(DEFAULT_PAGE_KEYWORDS)

    @property
    def prioritized_keywords(self) -> List[str]:
        return [k.lower() for k in self.page_keywords]

    def global_request_cap(self, domain_count: int) -> int:
        return max(1, domain_count) * max(10, min(80, self.max_requests_per_domain))
