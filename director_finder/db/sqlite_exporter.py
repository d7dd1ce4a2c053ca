from __future__ import annotations

import json
import sqlite3
from typing import List

from director_finder.schemas import DomainResult

DDL_STATEMENTS = [
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    """
    CREATE TABLE IF NOT EXISTS domain_results (
      input_domain TEXT PRIMARY KEY,
      best_name TEXT,
      best_title TEXT,
      best_email TEXT,
      best_phone TEXT,
      best_page_url TEXT,
      confidence INTEGER,
      all_emails TEXT NOT NULL,
      candidates_checked INTEGER NOT NULL,
      pages_crawled INTEGER NOT NULL,
      run_at TEXT NOT NULL,
      record TEXT NOT NULL
    )
    """.strip(),
    """
    CREATE INDEX IF NOT EXISTS idx_domain_results_confidence ON domain_results (confidence DESC)
    """.strip(),
]

UPSERT_SQL = (
    """
    INSERT INTO domain_results (
      input_domain, best_name, best_title, best_email, best_phone, best_page_url,
      confidence, all_emails, candidates_checked, pages_crawled, run_at, record
    ) VALUES (
      :input_domain, :best_name, :best_title, :best_email, :best_phone, :best_page_url,
      :confidence, :all_emails, :candidates_checked, :pages_crawled, :run_at, :record
    )
    ON CONFLICT(input_domain)
    DO UPDATE SET
      best_name = excluded.best_name,
      best_title = excluded.best_title,
      best_email = excluded.best_email,
      best_phone = excluded.best_phone,
      best_page_url = excluded.best_page_url,
      confidence = excluded.confidence,
      all_emails = excluded.all_emails,
      candidates_checked = excluded.candidates_checked,
      pages_crawled = excluded.pages_crawled,
      run_at = excluded.run_at,
      record = excluded.record
    """
).strip()


def ensure_schema(conn: sqlite3.Connection) -> None:
    for stmt in DDL_STATEMENTS:
        conn.execute(stmt)


def export_results_to_sqlite(db_path: str, results: List[DomainResult]) -> int:
    """Upsert per-domain results into a SQLite dataset (one row per input domain).

    Args:
        db_path: Path to the SQLite database file (will be created if absent)
        results: DomainResult models

    Returns:
        Number of rows processed (attempted upserts)
    """
    if not results:
        return 0

    conn = sqlite3.connect(db_path)
    try:
        ensure_schema(conn)

        rows = []
        for r in results:
            best = r.best_contact
            rows.append({
                "input_domain": r.input_domain,
                "best_name": best.full_name if best else None,
                "best_title": best.title if best else None,
                "best_email": best.email if best else None,
                "best_phone": best.phone if best else None,
                "best_page_url": best.page_url if best else None,
                "confidence": best.confidence if best else None,
                "all_emails": json.dumps(r.all_emails),
                "candidates_checked": r.candidates_checked,
                "pages_crawled": r.pages_crawled,
                "run_at": r.run_at.isoformat(),
                "record": json.dumps(r.to_record(), ensure_ascii=False),
            })

        with conn:  # transactional batch
            conn.executemany(UPSERT_SQL, rows)
        return len(rows)
    finally:
        conn.close()
