"""
Directory walking and aggregation of test records into package groups.
"""

import fnmatch
import os
from pathlib import Path
from typing import Iterator

from testdoc.core.scanner import scan_file
from testdoc.core.statistics import compute_statistics
from testdoc.support.config import TestDocConfig
from testdoc.support.exceptions import DirectoryWalkError, SourceParseError, SourceReadError
from testdoc.support.models import (
    DEFAULT_TEST_TYPE,
    AggregatedModel,
    PackageGroup,
    SkippedFile,
    TestRecord,
)


def is_test_file(path: Path) -> bool:
    """
    Check if a file follows the test file naming convention.
    Rules:
    - Must be a .py file
    - Must start with test_ or end with _test.py
    """
    if path.suffix != ".py":
        return False
    return path.name.startswith("test_") or path.name.endswith("_test.py")


def _matches_any(name: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def should_scan_file(path: Path, config: TestDocConfig) -> bool:
    """
    Decide whether a file takes part in aggregation.
    Include and exclude patterns are matched against the base name only.
    """
    if not is_test_file(path):
        return False

    if config.include_patterns and not _matches_any(path.name, config.include_patterns):
        return False

    if _matches_any(path.name, config.exclude_patterns):
        return False

    return True


class PackageAggregator:
    """
    Accumulates records into package groups for a single walk.
    Not meant to be shared between walks.
    """

    def __init__(self, include_skipped: bool = True):
        self.include_skipped = include_skipped
        self.packages: dict[str, PackageGroup] = {}
        self.skipped_files: list[SkippedFile] = []

    def add_records(self, records: list[TestRecord], source_path: Path) -> None:
        """Merge the records of one file, creating package groups on first sight."""
        for record in records:
            if not record.test_type:
                record.test_type = DEFAULT_TEST_TYPE

            if record.skipped and not self.include_skipped:
                continue

            group = self.packages.get(record.package)
            if group is None:
                group = PackageGroup(name=record.package, path=str(source_path.parent))
                self.packages[record.package] = group

            group.add_record(record)

    def skip_file(self, source_path: Path, reason: str) -> None:
        self.skipped_files.append(SkippedFile(path=str(source_path), reason=reason))

    def build(self) -> AggregatedModel:
        return AggregatedModel(
            packages=self.packages,
            statistics=compute_statistics(self.packages),
            skipped_files=self.skipped_files,
        )


def iter_test_files(root: Path, config: TestDocConfig) -> Iterator[Path]:
    """
    Yield qualifying test files under root in a stable, sorted order.
    Directories listed in config.exclude_dirs are not descended into.
    """
    if root.is_file():
        if should_scan_file(root, config):
            yield root
        return

    exclude_set = set(config.exclude_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in exclude_set)

        directory = Path(dirpath)
        for filename in sorted(filenames):
            file_path = directory / filename
            if should_scan_file(file_path, config):
                yield file_path


def aggregate_directory(root: Path, config: TestDocConfig | None = None) -> AggregatedModel:
    """
    Walk root and aggregate every test record found.

    Files that cannot be read or parsed are left out of the model and listed
    in ``AggregatedModel.skipped_files``; the walk carries on.

    Raises:
        DirectoryWalkError: If root does not exist or cannot be listed.
    """
    if config is None:
        config = TestDocConfig()

    if not root.exists():
        raise DirectoryWalkError(str(root), "path does not exist")
    if root.is_dir() and not os.access(root, os.R_OK | os.X_OK):
        raise DirectoryWalkError(str(root), "permission denied")

    aggregator = PackageAggregator(include_skipped=config.include_skipped)

    for file_path in iter_test_files(root, config):
        try:
            records = scan_file(file_path)
        except (SourceParseError, SourceReadError, OSError) as e:
            aggregator.skip_file(file_path, str(e))
            continue
        aggregator.add_records(records, file_path)

    return aggregator.build()
