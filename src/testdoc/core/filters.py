"""
Filtering of aggregated models.

Every filter returns a new model; the input is never modified.
"""
import copy
from typing import Callable, Iterable

from testdoc.core.statistics import compute_statistics
from testdoc.support.models import AggregatedModel, PackageGroup, TestRecord


def filter_model(model: AggregatedModel, predicate: Callable[[TestRecord], bool]) -> AggregatedModel:
    """
    Keep only records for which predicate returns True.
    Packages left without records are dropped and statistics are recomputed.
    """
    packages = {}

    for name, group in model.packages.items():
        filtered = PackageGroup(
            name=group.name,
            path=group.path,
            description=group.description,
        )
        for record in group.records:
            if predicate(record):
                filtered.add_record(copy.deepcopy(record))

        if filtered.records:
            packages[name] = filtered

    return AggregatedModel(
        packages=packages,
        statistics=compute_statistics(packages),
        skipped_files=list(model.skipped_files),
    )


def has_any_tag(record_tags: Iterable[str], filter_tags: Iterable[str]) -> bool:
    """True if the two tag collections share at least one tag."""
    return not set(record_tags).isdisjoint(filter_tags)


def filter_by_type(model: AggregatedModel, test_type: str) -> AggregatedModel:
    return filter_model(model, lambda record: record.test_type == test_type)


def filter_by_tags(model: AggregatedModel, tags: Iterable[str]) -> AggregatedModel:
    """Keep records carrying any of the given tags."""
    wanted = set(tags)
    return filter_model(model, lambda record: has_any_tag(record.tags, wanted))


def filter_by_author(model: AggregatedModel, author: str) -> AggregatedModel:
    return filter_model(model, lambda record: record.author == author)
