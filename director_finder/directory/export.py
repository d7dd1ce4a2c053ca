"""
Directory Export - JSONL, CSV and domain-keyed JSON index for harvested listings
"""

import csv
import json
from pathlib import Path
from typing import Dict, List, Union

from director_finder.schemas import DirectoryRecord


CSV_HEADER = ['campName', 'websiteUrl', 'email', 'phone', 'address', 'registrableDomain', 'sourceDirectory']


class DirectoryExporter:
    """Writes DirectoryRecord lists into a fixed output directory."""

    def __init__(self, output_dir: Union[str, Path] = "directory-collector/output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def to_jsonl(self, records: List[DirectoryRecord], filename: str = "directory-collect.jsonl") -> Path:
        path = self.output_dir / filename
        with open(path, 'w', encoding='utf-8') as f:
            for r in records:
                f.write(json.dumps(r.model_dump(by_alias=True), ensure_ascii=False))
                f.write("\n")
        return path

    def to_csv(self, records: List[DirectoryRecord], filename: str = "directory-collect.csv") -> Path:
        path = self.output_dir / filename
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL)
            writer.writerow(CSV_HEADER)
            for r in records:
                writer.writerow([
                    r.name, r.website, r.email, r.phone, r.address, r.registrable_domain, r.source_directory,
                ])
        return path

    def to_domain_index(self, records: List[DirectoryRecord], filename: str = "domain-index.json") -> Path:
        """Registrable domain -> {name, website, email, phone}; records without a domain are skipped."""
        index: Dict[str, dict] = {}
        for r in records:
            if not r.registrable_domain:
                continue
            index[r.registrable_domain] = {"name": r.name, "website": r.website, "email": r.email, "phone": r.phone}
        path = self.output_dir / filename
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(index, f, indent=2, ensure_ascii=False)
        return path

    def write_all(self, records: List[DirectoryRecord]) -> tuple[Path, Path, Path]:
        return self.to_jsonl(records), self.to_csv(records), self.to_domain_index(records)
