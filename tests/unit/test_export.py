"""
Unit tests for result export: JSONL file + echo stream, SQLite upsert and ops log.
"""

import io
import json
import sqlite3
from datetime import datetime, timezone

from director_finder.db.sqlite_exporter import export_results_to_sqlite
from director_finder.ops_logger import OpsLogger
from director_finder.pipeline.export import ResultExporter, result_to_json_line
from director_finder.schemas import Candidate, DomainResult


RUN_AT = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_result(domain="example.org", with_contact=True, confidence=83) -> DomainResult:
    best = None
    if with_contact:
        best = Candidate(
            full_name="Jane Doe",
            first_name="Jane",
            last_name="Doe",
            email="jane@example.org",
            title="Camp Director",
            page_url=f"https://{domain}/staff",
            context="Jane Doe - Camp Director",
            confidence=confidence,
            source="name-then-title",
        )
    return DomainResult(
        input_domain=domain,
        best_contact=best,
        all_emails=["jane@example.org"] if with_contact else [],
        candidates_checked=1 if with_contact else 0,
        pages_crawled=4,
        run_at=RUN_AT,
    )


def test_json_line_uses_camel_case_keys():
    rec = json.loads(result_to_json_line(make_result()))
    assert set(rec) == {"inputDomain", "bestContact", "allEmails", "candidatesChecked", "pagesCrawled", "runAt"}
    assert rec["bestContact"]["fullName"] == "Jane Doe"
    assert rec["bestContact"]["pageUrl"] == "https://example.org/staff"
    assert rec["runAt"].startswith("2024-06-01T12:00:00")


def test_jsonl_appends_and_echoes(tmp_path):
    exporter = ResultExporter(output_dir=tmp_path / "out")
    echo = io.StringIO()
    path = exporter.to_jsonl([make_result()], echo=echo)
    exporter.to_jsonl([make_result("camp.org", with_contact=False)])

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(l)["inputDomain"] for l in lines] == ["example.org", "camp.org"]
    assert json.loads(lines[1])["bestContact"] is None
    assert echo.getvalue().strip() == lines[0]


def test_sqlite_upsert_one_row_per_domain(tmp_path):
    db = tmp_path / "dcf.sqlite"
    assert export_results_to_sqlite(str(db), []) == 0
    assert export_results_to_sqlite(str(db), [make_result(), make_result("camp.org", with_contact=False)]) == 2
    export_results_to_sqlite(str(db), [make_result(confidence=99)])

    conn = sqlite3.connect(str(db))
    try:
        rows = conn.execute(
            "SELECT input_domain, best_name, confidence, all_emails FROM domain_results ORDER BY input_domain"
        ).fetchall()
    finally:
        conn.close()
    assert rows == [
        ("camp.org", None, None, "[]"),
        ("example.org", "Jane Doe", 99, '["jane@example.org"]'),
    ]


def test_ops_logger_writes_jsonl_with_timestamp(tmp_path, capsys):
    log_path = tmp_path / "logs" / "ops.log"
    ops = OpsLogger(log_path, also_stdout=True)
    ops.emit({"dcf_ops": 1, "url": "https://example.org/"})
    ops.emit({"dcf_ops": 1, "summary": True, "ts": "fixed"})

    records = [json.loads(l) for l in log_path.read_text(encoding="utf-8").splitlines()]
    assert records[0]["url"] == "https://example.org/"
    assert "ts" in records[0]
    assert records[1]["ts"] == "fixed"
    assert capsys.readouterr().out.count("dcf_ops") == 2
