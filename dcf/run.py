"""
Camp Director Finder - CLI Runner

Usage:
  python -m dcf.run example-camp.org www.other-camp.com --out ./out

  python -m dcf.run \
    --input domains.txt \
    --config config/example.yaml \
    --out ./out

  python -m dcf.run --input-json input.json --out ./out

Exit codes:
  0 - success
  1 - no domains supplied, or config error (missing/invalid YAML, invalid options)
  2 - input error (domain file missing/unreadable)
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from director_finder.ops_logger import OpsLogger
from director_finder.pipeline.crawl import DomainCrawler
from director_finder.pipeline.export import ResultExporter
from director_finder.pipeline.text_utils import dedupe
from director_finder.schemas import CrawlConfig


def read_domains_file(input_path: Path) -> List[str]:
    if not input_path.exists() or not input_path.is_file():
        print(f"Input error: file not found: {input_path}", file=sys.stderr)
        sys.exit(2)
    domains: List[str] = []
    for line in input_path.read_text(encoding="utf-8").splitlines():
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        domains.append(s)
    return domains


def read_input_json(input_path: Path) -> Dict[str, Any]:
    """Input document in the actor format: {"domains": [...], "maxDepth": 2, ...}."""
    if not input_path.exists() or not input_path.is_file():
        print(f"Input error: file not found: {input_path}", file=sys.stderr)
        sys.exit(2)
    try:
        doc = json.loads(input_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Input error: invalid JSON in {input_path}: {e}", file=sys.stderr)
        sys.exit(2)
    return doc if isinstance(doc, dict) else {}


def load_config(config_path: Optional[Path]) -> Dict[str, Any]:
    """Read the 'crawl' section of a YAML config (empty dict when no path given)."""
    if config_path is None:
        return {}
    if not config_path.exists() or not config_path.is_file():
        print(f"Config error: file not found: {config_path}", file=sys.stderr)
        sys.exit(1)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"Config error: invalid YAML in {config_path}: {e}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(cfg, dict):
        return {}
    crawl = cfg.get("crawl", {})
    return crawl if isinstance(crawl, dict) else {}


def build_crawl_config(yaml_cfg: Dict[str, Any], input_doc: Dict[str, Any], args: argparse.Namespace) -> CrawlConfig:
    """Merge defaults < YAML < JSON input document < CLI flags."""
    merged: Dict[str, Any] = {}
    merged.update(CrawlConfig.model_validate(yaml_cfg).model_dump(exclude_unset=True))
    merged.update(CrawlConfig.model_validate(input_doc).model_dump(exclude_unset=True))
    if args.max_depth is not None:
        merged["max_depth"] = args.max_depth
    if args.max_requests_per_domain is not None:
        merged["max_requests_per_domain"] = args.max_requests_per_domain
    if args.keyword:
        merged["page_keywords"] = args.keyword
    if args.use_proxy:
        merged["use_proxy"] = True
    if args.proxy_url:
        merged["proxy_url"] = args.proxy_url
    if args.concurrency is not None:
        merged["max_concurrency"] = args.concurrency
    if args.no_robots:
        merged["respect_robots"] = False
    if merged.get("use_proxy") and not merged.get("proxy_url"):
        merged["proxy_url"] = os.environ.get("DCF_PROXY_URL") or None
    return CrawlConfig.model_validate(merged)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dcf.run", description="Find camp director contacts on camp websites")
    parser.add_argument("domains", nargs="*", help="Domains or URLs to crawl")
    parser.add_argument("--input", "-i", default=None, help="Path to domains file (one per line)")
    parser.add_argument("--input-json", default=None, help="Path to JSON input document ({\"domains\": [...], ...})")
    parser.add_argument("--config", "-c", default=None, help="Path to YAML config file")
    parser.add_argument("--out", "-o", default="./out", help="Output directory (default ./out)")
    parser.add_argument("--max-depth", type=int, default=None, help="Link-following depth (default 2)")
    parser.add_argument("--max-requests-per-domain", type=int, default=None, help="Seed + discovered requests per domain (default 30)")
    parser.add_argument("--keyword", action="append", default=None, help="Prioritized page keyword (repeatable; replaces defaults)")
    parser.add_argument("--use-proxy", action="store_true", help="Route fetches through the proxy (--proxy-url or DCF_PROXY_URL)")
    parser.add_argument("--proxy-url", default=None, help="Proxy URL for --use-proxy")
    parser.add_argument("--concurrency", type=int, default=None, help="Concurrent fetches (default 8)")
    parser.add_argument("--no-robots", action="store_true", help="Do not consult robots.txt")
    parser.add_argument("--db", choices=["sqlite", "none"], default="sqlite", help="Dataset sink: sqlite or none (default: sqlite)")
    parser.add_argument("--db-path", default=None, help="Path to SQLite DB file (default: <out>/dcf.sqlite)")
    parser.add_argument("--ops-log", default=None, help="Path to ops JSONL log file (default: <out>/ops.log)")
    parser.add_argument("--ops-stdout", action="store_true", help="Also mirror ops JSON to stdout")
    args = parser.parse_args(argv)

    input_doc: Dict[str, Any] = read_input_json(Path(args.input_json)) if args.input_json else {}
    domains: List[str] = list(args.domains or [])
    if args.input:
        domains.extend(read_domains_file(Path(args.input)))
    doc_domains = input_doc.get("domains")
    if isinstance(doc_domains, list):
        domains.extend(str(d) for d in doc_domains if d)
    domains = dedupe(domains)
    if not domains:
        print("No domains provided in input.", file=sys.stderr)
        return 1

    yaml_cfg = load_config(Path(args.config) if args.config else None)
    try:
        config = build_crawl_config(yaml_cfg, input_doc, args)
    except ValidationError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    out_dir = Path(args.out)
    exporter = ResultExporter(output_dir=out_dir)
    ops_logger = OpsLogger(Path(args.ops_log) if args.ops_log else (out_dir / "ops.log"), also_stdout=args.ops_stdout)

    print(f"Crawl: depth={config.max_depth}, max_requests_per_domain={config.max_requests_per_domain}, "
          f"concurrency={config.max_concurrency}, proxy={'on' if config.use_proxy and config.proxy_url else 'off'}",
          file=sys.stderr)

    t0 = time.perf_counter()
    crawler = DomainCrawler(config, ops_logger=ops_logger)
    try:
        results = crawler.crawl(domains)
    finally:
        crawler.close()

    jsonl_path = exporter.to_jsonl(results, echo=sys.stdout)
    print(f"💾 JSONL: {jsonl_path}", file=sys.stderr)

    if args.db == "sqlite":
        from director_finder.db.sqlite_exporter import export_results_to_sqlite
        db_path = args.db_path or str(out_dir / "dcf.sqlite")
        written = export_results_to_sqlite(db_path, results)
        print(f"💽 SQLite: wrote {written} rows to {db_path}", file=sys.stderr)

    found = sum(1 for r in results if r.best_contact is not None)
    ops_logger.emit({
        "dcf_ops": 1,
        "summary": True,
        "domains": len(results),
        "with_contact": found,
        "pages_crawled": sum(r.pages_crawled for r in results),
        "candidates_checked": sum(r.candidates_checked for r in results),
        "durations": {"wall_s": round(time.perf_counter() - t0, 2)},
    })
    print(f"🏁 Done. Domains: {len(results)}, with director contact: {found}", file=sys.stderr)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
