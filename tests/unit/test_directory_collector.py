import csv
import json

import httpx
from selectolax.parser import HTMLParser

from director_finder.directory.collector import DirectoryCollector
from director_finder.directory.export import CSV_HEADER, DirectoryExporter
from director_finder.directory.listing import discover_subdirectories
from director_finder.pipeline.fetchers.static import StaticFetcher
from director_finder.schemas import DirectoryRecord


ROOT = "https://www.summercampdirectories.com/"

ROOT_HTML = """<html><body>
  <select>
    <option value="https://www.texassummercamps.com/">Texas</option>
    <option value="https://www.mainesummercamps.com/">Maine</option>
    <option value="https://www.brokensummercamps.com/">Broken</option>
  </select>
</body></html>"""

TEXAS_HTML = """<html><body><table>
  <tr><td><a href="https://www.lonestarcamp.com/">Lone Star Camp</a> Ph: 512-555-0100 Website: x</td></tr>
  <tr><td><a href="https://lonestarcamp.com/summer">Lone Star Summer</a> Ph: 512-555-0101
      Email: <a href="mailto:hi@lonestarcamp.com">hi</a></td></tr>
</table></body></html>"""

MAINE_HTML = """<html><body><table>
  <tr><td><a href="https://lonestarcamp.com/">Lone Star North</a> Website: x</td></tr>
  <tr><td><a href="https://pinelake.org/">Pine Lake</a> Email: <a href="mailto:info@pinelake.org">info</a></td></tr>
</table></body></html>"""


class _DirectoryTransport(httpx.BaseTransport):
    def __init__(self):
        self.pages = {
            "www.summercampdirectories.com": ROOT_HTML,
            "www.texassummercamps.com": TEXAS_HTML,
            "www.mainesummercamps.com": MAINE_HTML,
        }

    def handle_request(self, request: httpx.Request) -> httpx.Response:  # type: ignore[override]
        body = self.pages.get(request.url.host)
        if body is None:
            return httpx.Response(500, headers={"Content-Type": "text/html"}, content=b"oops", request=request)
        return httpx.Response(200, headers={"Content-Type": "text/html"}, content=body.encode(), request=request)


def make_collector() -> DirectoryCollector:
    fetcher = StaticFetcher(respect_robots=False, max_retries=0)
    fetcher._client = httpx.Client(transport=_DirectoryTransport())
    return DirectoryCollector(fetcher=fetcher, root_url=ROOT)


def test_collector_dedupes_across_directories_and_skips_failures(capsys):
    collector = make_collector()
    records = collector.run()
    collector.close()

    by_domain = {r.registrable_domain: r for r in records}
    assert set(by_domain) == {"lonestarcamp.com", "pinelake.org"}
    lone = by_domain["lonestarcamp.com"]
    assert lone.name == "Lone Star Summer"
    assert lone.email == "hi@lonestarcamp.com"
    assert lone.source_directory == "https://www.texassummercamps.com/"
    assert by_domain["pinelake.org"].source_directory == "https://www.mainesummercamps.com/"

    err = capsys.readouterr().err
    assert "brokensummercamps" in err


def test_exporter_writes_jsonl_csv_and_index(tmp_path):
    records = [
        DirectoryRecord(name='Camp "Quote"', website="https://a.org", email="x@a.org", phone="1",
                        address="Rd", registrable_domain="a.org", source_directory="https://d.com/"),
        DirectoryRecord(name="No Domain", email="n@b.org"),
    ]
    exporter = DirectoryExporter(output_dir=tmp_path / "out")
    jsonl_path, csv_path, index_path = exporter.write_all(records)

    lines = jsonl_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["registrableDomain"] == "a.org"
    assert first["sourceDirectory"] == "https://d.com/"

    raw = csv_path.read_text(encoding="utf-8")
    assert raw.splitlines()[0] == ",".join(f'"{h}"' for h in CSV_HEADER)
    rows = list(csv.reader(raw.splitlines()))
    assert rows[1][0] == 'Camp "Quote"'

    index = json.loads(index_path.read_text(encoding="utf-8"))
    assert index == {"a.org": {"name": 'Camp "Quote"', "website": "https://a.org", "email": "x@a.org", "phone": "1"}}


UNUSABLE_ROOT_HTML = """<html><body>
  <select>
    <option value="https://www.a\x7fsummercamps.com/">Control character</option>
    <option value="https://www.mainesummercamps.com:abc/">Bad port</option>
    <option value="https://www.rejectedsummercamps.com/">Rejected by client</option>
    <option value="https://www.mainesummercamps.com/">Maine</option>
  </select>
</body></html>"""


class _UnusableUrlTransport(_DirectoryTransport):
    def __init__(self):
        super().__init__()
        self.pages["www.summercampdirectories.com"] = UNUSABLE_ROOT_HTML

    def handle_request(self, request: httpx.Request) -> httpx.Response:  # type: ignore[override]
        if request.url.host == "www.rejectedsummercamps.com":
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")
        return super().handle_request(request)


def test_discover_subdirectories_drops_unparseable_urls():
    urls = discover_subdirectories(HTMLParser(UNUSABLE_ROOT_HTML))
    assert "https://www.mainesummercamps.com/" in urls
    assert "https://www.rejectedsummercamps.com/" in urls
    assert not any(":abc" in u for u in urls)


def test_collector_skips_subdirectory_with_invalid_url(capsys):
    fetcher = StaticFetcher(respect_robots=False, max_retries=0)
    fetcher._client = httpx.Client(transport=_UnusableUrlTransport())
    collector = DirectoryCollector(fetcher=fetcher, root_url=ROOT)
    records = collector.run()
    collector.close()

    assert {r.registrable_domain for r in records} == {"lonestarcamp.com", "pinelake.org"}
    assert "rejectedsummercamps" in capsys.readouterr().err
