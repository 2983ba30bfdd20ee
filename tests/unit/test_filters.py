import pytest

from testdoc.core.aggregator import PackageAggregator
from testdoc.core.filters import (
    filter_by_author,
    filter_by_tags,
    filter_by_type,
    filter_model,
    has_any_tag,
)
from testdoc.support.models import SkippedFile, TestRecord
from pathlib import Path


@pytest.fixture
def model():
    aggregator = PackageAggregator()
    aggregator.add_records(
        [
            TestRecord(name="test_login", package="auth", test_type="integration",
                       tags=["api", "auth"], author="Anna"),
            TestRecord(name="test_hash", package="auth", test_type="unit",
                       tags=["crypto"], author="Bob"),
        ],
        Path("/p/auth/test_auth.py"),
    )
    aggregator.add_records(
        [
            TestRecord(name="test_charge", package="billing", test_type="integration",
                       tags=["api"], author="Bob", skipped=True, skip_reason="sandbox down"),
            TestRecord(name="test_rounding", package="billing", test_type="unit"),
        ],
        Path("/p/billing/test_billing.py"),
    )
    aggregator.add_records(
        [TestRecord(name="test_render", package="ui", test_type="smoke", tags=["ui"])],
        Path("/p/ui/test_ui.py"),
    )
    aggregator.skip_file(Path("/p/ui/test_broken.py"), "syntax error")
    return aggregator.build()


def test_has_any_tag():
    assert has_any_tag(["api", "db"], ["db"])
    assert not has_any_tag(["api"], ["db", "ui"])
    assert not has_any_tag([], ["api"])


def test_filter_by_type_counts(model):
    expected = sum(1 for r in model.all_records() if r.test_type == "integration")

    result = filter_by_type(model, "integration")
    stats = result.statistics

    assert stats.total == expected == 2
    assert stats.active + stats.skipped == stats.total
    assert stats.type_distribution == {"integration": 2}


def test_filter_by_type_omits_empty_packages(model):
    result = filter_by_type(model, "smoke")
    assert list(result.packages) == ["ui"]
    assert result.statistics.package_count == 1


def test_filter_by_tags_any_of(model):
    result = filter_by_tags(model, ["api"])

    names = sorted(r.name for r in result.all_records())
    assert names == ["test_charge", "test_login"]
    assert set(result.packages) == {"auth", "billing"}
    assert "ui" not in result.packages


def test_filter_by_tags_is_idempotent(model):
    once = filter_by_tags(model, ["api", "ui"])
    twice = filter_by_tags(once, ["api", "ui"])

    assert [r.name for r in twice.all_records()] == [r.name for r in once.all_records()]
    assert twice.statistics == once.statistics


def test_filter_by_author(model):
    result = filter_by_author(model, "Bob")

    assert [r.name for r in result.all_records()] == ["test_hash", "test_charge"]
    assert result.packages["auth"].test_types == ["unit"]
    assert result.packages["billing"].test_types == ["integration"]
    assert result.statistics.skipped == 1


def test_filter_does_not_mutate_input(model):
    before_stats = model.statistics
    before_names = [r.name for r in model.all_records()]

    result = filter_by_author(model, "Anna")
    result.packages["auth"].records[0].tags.append("changed")

    assert model.statistics is before_stats
    assert [r.name for r in model.all_records()] == before_names
    assert model.packages["auth"].records[0].tags == ["api", "auth"]


def test_filter_with_no_matches(model):
    result = filter_by_author(model, "Nobody")
    assert result.packages == {}
    assert result.statistics.total == 0


def test_filter_model_keeps_diagnostics(model):
    result = filter_model(model, lambda record: True)

    assert result.skipped_files == [SkippedFile(path="/p/ui/test_broken.py", reason="syntax error")]
    assert result.skipped_files is not model.skipped_files
    assert result.statistics == model.statistics
