"""
Statistics over aggregated test records.
"""

from testdoc.support.models import PackageGroup, Statistics


def compute_statistics(packages: dict[str, PackageGroup]) -> Statistics:
    """
    Compute statistics from scratch over every package group.
    Always a full recomputation; never patch an existing snapshot.
    """
    stats = Statistics()

    for group in packages.values():
        stats.package_count += 1
        for record in group.records:
            stats.total += 1
            if record.skipped:
                stats.skipped += 1
            else:
                stats.active += 1
            stats.type_distribution[record.test_type] = (
                stats.type_distribution.get(record.test_type, 0) + 1
            )

    return stats


def type_percentages(stats: Statistics) -> dict[str, float]:
    """Share of each test type in percent of the total."""
    if stats.total == 0:
        return {}

    return {
        test_type: count / stats.total * 100
        for test_type, count in stats.type_distribution.items()
    }


def most_common_type(stats: Statistics) -> tuple[str | None, int]:
    """
    Return the most frequent test type and its count.
    Ties go to the type counted first.
    """
    best_type = None
    best_count = 0
    for test_type, count in stats.type_distribution.items():
        if count > best_count:
            best_type = test_type
            best_count = count
    return best_type, best_count
