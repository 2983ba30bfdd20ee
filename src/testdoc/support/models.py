"""
Data models for testdoc.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator


UNIT_TEST = "unit"
INTEGRATION_TEST = "integration"
FUNCTIONAL_TEST = "functional"
E2E_TEST = "e2e"
PERFORMANCE_TEST = "performance"
SECURITY_TEST = "security"
REGRESSION_TEST = "regression"
SMOKE_TEST = "smoke"

TEST_TYPES = (
    UNIT_TEST,
    INTEGRATION_TEST,
    FUNCTIONAL_TEST,
    E2E_TEST,
    PERFORMANCE_TEST,
    SECURITY_TEST,
    REGRESSION_TEST,
    SMOKE_TEST,
)

DEFAULT_TEST_TYPE = UNIT_TEST


def is_valid_test_type(test_type: str) -> bool:
    """Check whether a classification belongs to the supported set."""
    return test_type in TEST_TYPES


@dataclass
class Step:
    """One action within a test case."""
    action: str
    expected: str | None = None
    description: str = ""


@dataclass
class TestCase:
    """A named sub-scenario of a test function."""
    __test__ = False

    name: str
    description: str = ""
    input: str | None = None
    expected: str | None = None
    steps: list[Step] = field(default_factory=list)


@dataclass
class TestRecord:
    """Metadata extracted for a single test function."""
    __test__ = False

    name: str
    test_type: str = ""
    description: str = ""
    test_cases: list[TestCase] = field(default_factory=list)
    skipped: bool = False
    skip_reason: str | None = None
    package: str = ""
    file: str = ""
    line: int = 0
    tags: list[str] = field(default_factory=list)
    author: str | None = None
    created: date | None = None
    updated: date | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class PackageGroup:
    """All records collected for one package."""
    name: str
    path: str
    records: list[TestRecord] = field(default_factory=list)
    test_types: list[str] = field(default_factory=list)
    description: str = ""

    def add_record(self, record: TestRecord) -> None:
        self.records.append(record)
        if record.test_type not in self.test_types:
            self.test_types.append(record.test_type)


@dataclass
class Statistics:
    """Summary counts over an aggregated model."""
    total: int = 0
    active: int = 0
    skipped: int = 0
    package_count: int = 0
    type_distribution: dict[str, int] = field(default_factory=dict)


@dataclass
class SkippedFile:
    """A candidate file the aggregator could not read or parse."""
    path: str
    reason: str


@dataclass
class AggregatedModel:
    """Package-grouped records plus their statistics."""
    packages: dict[str, PackageGroup] = field(default_factory=dict)
    statistics: Statistics = field(default_factory=Statistics)
    skipped_files: list[SkippedFile] = field(default_factory=list)

    def all_records(self) -> Iterator[TestRecord]:
        for group in self.packages.values():
            yield from group.records
