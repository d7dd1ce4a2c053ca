"""
Camp Directory Collector - CLI Runner

Harvests camp listings (name, website, email, phone, address) from the
summer-camp directory network and writes JSONL, CSV and a domain index.

Usage:
  python -m dcf.collect --out directory-collector/output
  python -m dcf.collect --root https://www.summercampdirectories.com/ --out ./dir-out

Exit codes:
  0 - success
  3 - processing error (root directory page unreachable)
"""
from __future__ import annotations

import argparse
import sys

import httpx

from director_finder.directory.collector import DirectoryCollector
from director_finder.directory.export import DirectoryExporter
from director_finder.directory.listing import ROOT_URL
from director_finder.pipeline.fetchers.static import StaticFetcher


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dcf.collect", description="Collect camp listings from directory sites")
    parser.add_argument("--root", default=ROOT_URL, help=f"Directory root page (default {ROOT_URL})")
    parser.add_argument("--out", "-o", default="directory-collector/output", help="Output directory")
    parser.add_argument("--timeout", type=float, default=20.0, help="Per-request timeout in seconds")
    parser.add_argument("--no-robots", action="store_true", help="Do not consult robots.txt")
    args = parser.parse_args(argv)

    fetcher = StaticFetcher(timeout_s=args.timeout, respect_robots=not args.no_robots)
    collector = DirectoryCollector(fetcher=fetcher, root_url=args.root)
    try:
        records = collector.run()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        print(f"Processing error: cannot load directory root {args.root}: {e}", file=sys.stderr)
        return 3
    finally:
        collector.close()

    exporter = DirectoryExporter(output_dir=args.out)
    jsonl_path, csv_path, index_path = exporter.write_all(records)
    print(f"✅ Collected {len(records)} unique camps")
    print(f"💾 JSONL: {jsonl_path}")
    print(f"📊 CSV: {csv_path}")
    print(f"🗂️  Domain index: {index_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
