import pytest
from pathlib import Path

from testdoc.core.aggregator import (
    PackageAggregator,
    aggregate_directory,
    is_test_file,
    iter_test_files,
    should_scan_file,
)
from testdoc.support.config import TestDocConfig
from testdoc.support.exceptions import DirectoryWalkError
from testdoc.support.models import TestRecord


SKIPPED_TEST = '''import pytest


# @type: integration
# @tags: api
def test_remote_call():
    pytest.skip("no network")


def test_local():
    """@tags: api, fast"""
'''


@pytest.fixture
def test_tree(tmp_path):
    """
    tmp/
      api/test_remote.py      (one skipped, one active)
      api/test_broken.py      (syntax error)
      core/test_core.py       (no annotations)
      core/helpers.py         (not a test file)
      .venv/test_vendor.py    (excluded dir)
    """
    api = tmp_path / "api"
    core = tmp_path / "core"
    venv = tmp_path / ".venv"
    for d in (api, core, venv):
        d.mkdir()

    (api / "test_remote.py").write_text(SKIPPED_TEST, encoding="utf-8")
    (api / "test_broken.py").write_text("def test_broken(:\n", encoding="utf-8")
    (core / "test_core.py").write_text(
        "def test_one():\n    pass\n\n\ndef test_two():\n    pass\n", encoding="utf-8"
    )
    (core / "helpers.py").write_text("def test_helper():\n    pass\n", encoding="utf-8")
    (venv / "test_vendor.py").write_text("def test_vendor():\n    pass\n", encoding="utf-8")
    return tmp_path


def test_is_test_file():
    assert is_test_file(Path("test_api.py"))
    assert is_test_file(Path("api_test.py"))
    assert not is_test_file(Path("api.py"))
    assert not is_test_file(Path("test_api.txt"))
    assert not is_test_file(Path("conftest.py"))


def test_should_scan_file_include_patterns():
    config = TestDocConfig(include_patterns=["test_api*.py"])
    assert should_scan_file(Path("/x/test_api_v2.py"), config)
    assert not should_scan_file(Path("/x/test_db.py"), config)


def test_should_scan_file_empty_include_means_all():
    config = TestDocConfig(include_patterns=[])
    assert should_scan_file(Path("/x/test_db.py"), config)
    assert not should_scan_file(Path("/x/db.py"), config)


def test_should_scan_file_exclude_patterns():
    config = TestDocConfig(exclude_patterns=["*_slow*"])
    assert not should_scan_file(Path("/x/test_db_slow.py"), config)
    assert should_scan_file(Path("/x/test_db.py"), config)


def test_iter_test_files_sorted_and_pruned(test_tree):
    files = [p.relative_to(test_tree) for p in iter_test_files(test_tree, TestDocConfig())]
    assert files == [
        Path("api/test_broken.py"),
        Path("api/test_remote.py"),
        Path("core/test_core.py"),
    ]


def test_iter_test_files_single_file_root(test_tree):
    target = test_tree / "core" / "test_core.py"
    assert list(iter_test_files(target, TestDocConfig())) == [target]


def test_aggregate_directory(test_tree):
    model = aggregate_directory(test_tree)

    assert list(model.packages) == ["api", "core"]
    api = model.packages["api"]
    assert [r.name for r in api.records] == ["test_remote_call", "test_local"]
    assert api.path == str(test_tree / "api")

    remote = api.records[0]
    assert remote.skipped is True
    assert remote.skip_reason == "no network"


def test_aggregate_directory_skips_broken_file(test_tree):
    model = aggregate_directory(test_tree)

    assert len(model.skipped_files) == 1
    assert model.skipped_files[0].path.endswith("test_broken.py")
    names = [r.name for r in model.all_records()]
    assert "test_broken" not in names


def test_aggregate_directory_defaults_type(test_tree):
    model = aggregate_directory(test_tree)

    core = model.packages["core"]
    assert all(r.test_type == "unit" for r in core.records)
    assert model.packages["api"].test_types == ["integration", "unit"]


def test_aggregate_directory_statistics(test_tree):
    stats = aggregate_directory(test_tree).statistics

    assert stats.total == 4
    assert stats.active == 3
    assert stats.skipped == 1
    assert stats.package_count == 2
    assert stats.type_distribution == {"integration": 1, "unit": 3}
    assert stats.total == stats.active + stats.skipped
    assert stats.total == sum(stats.type_distribution.values())


def test_aggregate_directory_drops_skipped_when_configured(test_tree):
    model = aggregate_directory(test_tree, TestDocConfig(include_skipped=False))

    names = [r.name for r in model.all_records()]
    assert "test_remote_call" not in names
    assert model.statistics.skipped == 0
    assert model.packages["api"].test_types == ["unit"]


def test_aggregate_directory_missing_root(tmp_path):
    with pytest.raises(DirectoryWalkError):
        aggregate_directory(tmp_path / "missing")


def test_aggregate_empty_directory(tmp_path):
    model = aggregate_directory(tmp_path)
    assert model.packages == {}
    assert model.statistics.total == 0


def test_package_aggregator_merges_by_package():
    aggregator = PackageAggregator()
    source = Path("/project/tests/test_a.py")
    aggregator.add_records(
        [
            TestRecord(name="test_one", package="tests", test_type="smoke"),
            TestRecord(name="test_two", package="tests", test_type="smoke"),
            TestRecord(name="test_three", package="other"),
        ],
        source,
    )

    model = aggregator.build()

    assert list(model.packages) == ["tests", "other"]
    assert model.packages["tests"].test_types == ["smoke"]
    assert model.packages["other"].records[0].test_type == "unit"
    assert model.packages["tests"].path == "/project/tests"


def test_aggregate_directory_reads_bom_files(tmp_path):
    (tmp_path / "smoke").mkdir()
    (tmp_path / "smoke" / "test_bom.py").write_bytes(
        b"\xef\xbb\xbf# @type: smoke\ndef test_a():\n    pass\n"
    )

    model = aggregate_directory(tmp_path)

    assert model.skipped_files == []
    assert [r.test_type for r in model.all_records()] == ["smoke"]
