import os

import pytest

from ecolabel.exceptions import ReportNotFoundError
from ecolabel.storage import ReportStore


def test_save_and_load(tmp_path):
    store = ReportStore(tmp_path / "reports")
    path = store.save("report-a.json", {"ecoData": {"ecoScore": 82}})

    assert path.exists()
    assert store.load("report-a.json") == {"ecoData": {"ecoScore": 82}}


def test_list_newest_first(tmp_path):
    store = ReportStore(tmp_path)
    store.save("old.json", {})
    store.save("new.json", {})
    (tmp_path / "notes.txt").write_text("ignored")
    os.utime(tmp_path / "old.json", (1_000_000, 1_000_000))
    os.utime(tmp_path / "new.json", (2_000_000, 2_000_000))

    assert [r.filename for r in store.list()] == ["new.json", "old.json"]
    assert store.list()[0].to_dict()["size"] == 2


def test_list_missing_directory(tmp_path):
    assert ReportStore(tmp_path / "missing").list() == []


def test_load_missing(tmp_path):
    with pytest.raises(ReportNotFoundError):
        ReportStore(tmp_path).load("nope.json")


@pytest.mark.parametrize("name", ["../secret.json", "sub/report.json", "..", ""])
def test_rejects_paths(tmp_path, name):
    store = ReportStore(tmp_path / "reports")
    (tmp_path / "secret.json").write_text("{}")
    with pytest.raises(ReportNotFoundError):
        store.load(name)
