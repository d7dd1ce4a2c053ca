from __future__ import annotations

import sys
from typing import List, Optional

import httpx
from selectolax.parser import HTMLParser

from director_finder.pipeline.fetchers.static import StaticFetcher
from director_finder.schemas import DirectoryRecord
from .listing import ROOT_URL, dedupe_by_domain, discover_subdirectories, extract_listings, normalize_record


class DirectoryCollector:
    """Harvests camp listings from a directory root and its sibling sub-directories.

    One sub-directory failing never aborts the batch: it is logged and skipped.
    """

    def __init__(self, fetcher: Optional[StaticFetcher] = None, root_url: str = ROOT_URL) -> None:
        self.fetcher = fetcher or StaticFetcher(timeout_s=20.0)
        self.root_url = root_url

    def _fetch_parser(self, url: str) -> Optional[HTMLParser]:
        res = self.fetcher.fetch(url)
        if res.blocked_by_robots:
            raise httpx.HTTPError(f"blocked by robots.txt: {url}")
        if res.status_code >= 400:
            raise httpx.HTTPError(f"HTTP {res.status_code}: {url}")
        if not res.html:
            return None
        return HTMLParser(res.html)

    def collect_subdirectories(self) -> List[str]:
        parser = self._fetch_parser(self.root_url)
        if parser is None:
            return []
        return discover_subdirectories(parser)

    def collect_directory(self, dir_url: str) -> List[DirectoryRecord]:
        parser = self._fetch_parser(dir_url)
        if parser is None:
            return []
        records = [normalize_record(r) for r in extract_listings(parser)]
        return dedupe_by_domain(records)

    def run(self) -> List[DirectoryRecord]:
        print("Discovering subdirectories...")
        subdirs = self.collect_subdirectories()
        print(f"Found {len(subdirs)} subdirectories")

        harvested: List[DirectoryRecord] = []
        for u in subdirs:
            print(f"➡️  Harvesting {u}")
            try:
                items = self.collect_directory(u)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                print(f"  ⚠️  Failed {u}: {e}", file=sys.stderr)
                continue
            harvested.extend(r.model_copy(update={"source_directory": u}) for r in items)
        return dedupe_by_domain(harvested)

    def close(self) -> None:
        self.fetcher.close()
