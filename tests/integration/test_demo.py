"""
End-to-end tests for the director finder.

The offline test runs the full CLI (seeding, fetching, extraction, scoring,
aggregation, JSONL/SQLite export) against a small fake camp site served by an
httpx mock transport.

The live test crawls a real site and is opt-in:
    DCF_RUN_INTEGRATION=1 pytest tests/integration/test_demo.py -v
    DCF_TEST_DOMAIN="example-camp.org" DCF_RUN_INTEGRATION=1 pytest tests/integration/test_demo.py -v
"""

import json
import os
import sqlite3

import httpx
import pytest

import dcf.run as run_mod
from director_finder.pipeline import crawl as crawl_mod
from director_finder.pipeline.fetchers.static import StaticFetcher


SITE = {
    ("pinelake.org", "/robots.txt"): ("text/plain", "User-agent: *\nDisallow: /private\n"),
    ("pinelake.org", "/"): ("text/html", """<html><body>
        <nav><a href="/about">About</a> <a href="/private/about-board">Board</a></nav>
        <h1>Welcome to Pine Lake Camp</h1>
        <p>Questions? Write <a href="mailto:office@pinelake.org">office@pinelake.org</a>.</p>
        <footer>Webmaster: webmaster@hosting-company.com</footer>
    </body></html>"""),
    ("pinelake.org", "/about"): ("text/html", """<html><body>
        <h2>Our Leadership</h2>
        <div class="staff-card">
            <h3>Maria Lopez</h3>
            <p>Executive Director</p>
            <p>Call <a href="tel:2075550142">207-555-0142</a></p>
        </div>
        <a href="/about/our-team">Full team</a> <a href="/brochure">Brochure (PDF)</a>
    </body></html>"""),
    ("pinelake.org", "/about/our-team"): ("text/html", """<html><body>
        <ul>
            <li>Tom Baker - Camp Director <a href="mailto:tom@pinelake.org">tom@pinelake.org</a></li>
            <li>Amy Chen, Program Director</li>
        </ul>
    </body></html>"""),
    ("pinelake.org", "/brochure"): ("application/pdf", "%PDF-1.4"),
    ("quietcamp.com", "/contact"): ("text/html", """<html><body>
        <p>Reach us at hello@quietcamp.com or our partner partner@gmail.com</p>
    </body></html>"""),
}


class _SiteTransport(httpx.BaseTransport):
    def handle_request(self, request: httpx.Request) -> httpx.Response:  # type: ignore[override]
        host = (request.url.host or "").removeprefix("www.")
        hit = SITE.get((host, request.url.path))
        if hit is None:
            return httpx.Response(404, headers={"Content-Type": "text/html"}, content=b"not found", request=request)
        mime, body = hit
        return httpx.Response(200, headers={"Content-Type": mime}, content=body.encode(), request=request)


@pytest.fixture
def offline_fetcher(monkeypatch):
    def factory(**kwargs):
        fetcher = StaticFetcher(**kwargs)
        fetcher._client = httpx.Client(transport=_SiteTransport())
        return fetcher

    monkeypatch.setattr(crawl_mod, "StaticFetcher", factory)


def test_end_to_end_offline(tmp_path, offline_fetcher, capsys):
    out = tmp_path / "out"
    code = run_mod.main([
        "pinelake.org", "https://www.quietcamp.com/", "not a domain",
        "--keyword", "about", "--keyword", "our team", "--keyword", "contact", "--keyword", "brochure",
        "--max-requests-per-domain", "60", "--concurrency", "4", "--out", str(out),
    ])
    assert code == 0

    lines = [json.loads(l) for l in capsys.readouterr().out.splitlines() if l.startswith("{")]
    by_domain = {rec["inputDomain"]: rec for rec in lines}
    assert set(by_domain) == {"pinelake.org", "https://www.quietcamp.com/", "not a domain"}

    pine = by_domain["pinelake.org"]
    best = pine["bestContact"]
    assert best["fullName"] == "Tom Baker"
    assert best["email"] == "tom@pinelake.org"
    assert best["source"] == "name-then-title"
    assert best["confidence"] >= 75
    assert set(pine["allEmails"]) == {"office@pinelake.org", "tom@pinelake.org"}
    # root, /about, /about/our-team and the non-text brochure
    assert pine["pagesCrawled"] == 4
    assert pine["candidatesChecked"] >= 3

    quiet = by_domain["https://www.quietcamp.com/"]
    assert quiet["bestContact"] is None
    assert quiet["allEmails"] == ["hello@quietcamp.com"]

    invalid = by_domain["not a domain"]
    assert invalid["pagesCrawled"] == 0
    assert invalid["bestContact"] is None

    conn = sqlite3.connect(str(out / "dcf.sqlite"))
    try:
        row = conn.execute(
            "SELECT best_name, best_email FROM domain_results WHERE input_domain = ?", ("pinelake.org",)
        ).fetchone()
    finally:
        conn.close()
    assert row == ("Tom Baker", "tom@pinelake.org")

    ops = [json.loads(l) for l in (out / "ops.log").read_text(encoding="utf-8").splitlines()]
    assert any(rec.get("outcome") == "robots" for rec in ops)
    assert ops[-1]["summary"] is True


@pytest.mark.skipif(
    os.getenv("DCF_RUN_INTEGRATION") != "1",
    reason="Integration tests require DCF_RUN_INTEGRATION=1"
)
def test_end_to_end_live(tmp_path):
    """Crawl a real camp site and check the result record is well formed."""
    domain = os.getenv("DCF_TEST_DOMAIN", "example.com")
    out = tmp_path / "live"
    code = run_mod.main([domain, "--max-requests-per-domain", "15", "--out", str(out), "--db", "none"])
    assert code == 0

    records = [json.loads(l) for l in (out / "results.jsonl").read_text(encoding="utf-8").splitlines()]
    assert len(records) == 1
    rec = records[0]
    assert rec["inputDomain"] == domain
    assert rec["pagesCrawled"] >= 1
    if rec["bestContact"]:
        print(f"\n✅ {rec['bestContact']['fullName']} ({rec['bestContact']['title']}) "
              f"confidence={rec['bestContact']['confidence']}")
