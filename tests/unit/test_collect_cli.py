import json

import httpx

import dcf.collect as collect_mod
from director_finder.schemas import DirectoryRecord


class _FakeCollector:
    def __init__(self, fetcher=None, root_url=None):
        self.root_url = root_url
        self.closed = False

    def run(self):
        return [DirectoryRecord(name="Pine Lake", website="https://pinelake.org/", email="info@pinelake.org",
                                registrable_domain="pinelake.org", source_directory="https://www.mainesummercamps.com/")]

    def close(self):
        self.closed = True


class _UnreachableCollector(_FakeCollector):
    def run(self):
        raise httpx.ConnectError("no route to host")


def test_collect_writes_all_outputs(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(collect_mod, "DirectoryCollector", _FakeCollector)
    out = tmp_path / "dir-out"
    assert collect_mod.main(["--out", str(out)]) == 0

    assert (out / "directory-collect.jsonl").exists()
    assert (out / "directory-collect.csv").exists()
    index = json.loads((out / "domain-index.json").read_text(encoding="utf-8"))
    assert index["pinelake.org"]["email"] == "info@pinelake.org"
    assert "Collected 1 unique camps" in capsys.readouterr().out


def test_collect_root_failure_exits_3(tmp_path, monkeypatch):
    monkeypatch.setattr(collect_mod, "DirectoryCollector", _UnreachableCollector)
    assert collect_mod.main(["--out", str(tmp_path / "o")]) == 3
    assert not (tmp_path / "o").exists()


class _InvalidRootCollector(_FakeCollector):
    def run(self):
        raise httpx.InvalidURL("Invalid port: 'abc'")


def test_collect_invalid_root_url_exits_3(tmp_path, monkeypatch):
    monkeypatch.setattr(collect_mod, "DirectoryCollector", _InvalidRootCollector)
    assert collect_mod.main(["--root", "https://www.summercampdirectories.com:abc/", "--out", str(tmp_path / "o")]) == 3
