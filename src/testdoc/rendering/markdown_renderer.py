"""
Markdown renderer for aggregated test documentation.
"""
from datetime import datetime

from testdoc.core.statistics import type_percentages
from testdoc.support.config import TestDocConfig
from testdoc.support.models import (
    E2E_TEST,
    FUNCTIONAL_TEST,
    INTEGRATION_TEST,
    PERFORMANCE_TEST,
    REGRESSION_TEST,
    SECURITY_TEST,
    SMOKE_TEST,
    UNIT_TEST,
    AggregatedModel,
    Statistics,
    TestRecord,
)

DISPLAY_NAMES = {
    UNIT_TEST: "Unit",
    INTEGRATION_TEST: "Integration",
    FUNCTIONAL_TEST: "Functional",
    E2E_TEST: "End-to-End",
    PERFORMANCE_TEST: "Performance",
    SECURITY_TEST: "Security",
    REGRESSION_TEST: "Regression",
    SMOKE_TEST: "Smoke",
}

DATE_FORMAT = "%Y-%m-%d"


def type_display_name(test_type: str) -> str:
    """Human readable name of a test type; unknown types are shown as-is."""
    return DISPLAY_NAMES.get(test_type, test_type)


def _anchor(text: str) -> str:
    return text.lower().replace("_", "-").replace(".", "")


def _record_anchor(record: TestRecord) -> str:
    # Test names repeat across files and packages
    stem = record.file.rsplit(".", 1)[0]
    return _anchor("-".join(part for part in (record.package, stem, record.name) if part))


def _cell(text: str) -> str:
    """Escape text for a Markdown table cell."""
    return str(text).replace("|", "\\|").replace("\n", " ")


def _group_by_type(model: AggregatedModel) -> dict[str, list[TestRecord]]:
    groups = {}
    for record in model.all_records():
        groups.setdefault(record.test_type, []).append(record)
    for records in groups.values():
        records.sort(key=lambda r: r.name)
    return groups


def _sorted_records(model: AggregatedModel) -> list[TestRecord]:
    return sorted(model.all_records(), key=lambda r: r.name)


def render_toc(model: AggregatedModel, config: TestDocConfig) -> str:
    """Render the table of contents following the configured grouping."""
    lines = ["## Contents", ""]

    if config.group_by_package:
        for name in sorted(model.packages):
            lines.append(f"- [Package {name}](#package-{_anchor(name)})")
            for record in model.packages[name].records:
                lines.append(f"  - [{record.name}](#{_record_anchor(record)})")
    elif config.group_by_type:
        groups = _group_by_type(model)
        for test_type in sorted(groups):
            display = type_display_name(test_type)
            lines.append(f"- [{display} tests](#{_anchor(display)}-tests)")
            for record in groups[test_type]:
                lines.append(f"  - [{record.name}](#{_record_anchor(record)})")
    else:
        for record in _sorted_records(model):
            lines.append(f"- [{record.name}](#{_record_anchor(record)})")

    lines.append("")
    return "\n".join(lines)


def render_statistics(stats: Statistics) -> str:
    """
    Render the statistics section.

    Returns:
        Markdown string with totals and the type distribution.
    """
    lines = []
    lines.append("## Test Statistics")
    lines.append("")
    lines.append(f"- **Total tests:** {stats.total}")
    lines.append(f"- **Active tests:** {stats.active}")
    lines.append(f"- **Skipped tests:** {stats.skipped}")
    lines.append(f"- **Packages:** {stats.package_count}")
    lines.append("")

    lines.append("### Distribution by type")
    lines.append("")
    percentages = type_percentages(stats)
    for test_type in sorted(stats.type_distribution):
        count = stats.type_distribution[test_type]
        lines.append(
            f"- **{type_display_name(test_type)}:** {count} ({percentages[test_type]:.1f}%)"
        )
    lines.append("")

    return "\n".join(lines)


def render_record(record: TestRecord) -> str:
    """Render the section for a single test."""
    lines = [f"### {record.name} <a id=\"{_record_anchor(record)}\"></a>", ""]

    lines.append("| Field | Value |")
    lines.append("|-------|-------|")
    lines.append(f"| **Type** | {_cell(type_display_name(record.test_type))} |")
    lines.append(f"| **Package** | `{_cell(record.package)}` |")
    lines.append(f"| **File** | `{_cell(record.file)}:{record.line}` |")

    if record.skipped:
        lines.append("| **Status** | ⏭️ Skipped |")
        if record.skip_reason:
            lines.append(f"| **Skip reason** | {_cell(record.skip_reason)} |")
    else:
        lines.append("| **Status** | ✅ Active |")

    if record.author:
        lines.append(f"| **Author** | {_cell(record.author)} |")
    if record.created:
        lines.append(f"| **Created** | {record.created.strftime(DATE_FORMAT)} |")
    if record.updated:
        lines.append(f"| **Updated** | {record.updated.strftime(DATE_FORMAT)} |")
    if record.tags:
        tags = ", ".join(f"`{_cell(tag)}`" for tag in record.tags)
        lines.append(f"| **Tags** | {tags} |")
    lines.append("")

    if record.description:
        lines.append("**Description:**")
        lines.append("")
        lines.append(record.description)
        lines.append("")

    if record.test_cases:
        lines.append("#### Test cases")
        lines.append("")
        for i, case in enumerate(record.test_cases, 1):
            lines.append(f"**{i}. {case.name}**")
            lines.append("")
            if case.description:
                lines.append(case.description)
                lines.append("")
            if case.input:
                lines.append(f"- **Input:** {case.input}")
            if case.expected:
                lines.append(f"- **Expected:** {case.expected}")
            if case.steps:
                lines.append("**Steps:**")
                lines.append("")
                for j, step in enumerate(case.steps, 1):
                    if step.expected:
                        lines.append(f"{j}. {step.action} → {step.expected}")
                    else:
                        lines.append(f"{j}. {step.action}")
                lines.append("")

    if record.metadata:
        lines.append("#### Additional information")
        lines.append("")
        for key in sorted(record.metadata):
            lines.append(f"- **{key.title()}:** {record.metadata[key]}")
        lines.append("")

    lines.append("---")
    lines.append("")
    return "\n".join(lines)


def render_content(model: AggregatedModel, config: TestDocConfig) -> str:
    lines = []

    if config.group_by_package:
        for name in sorted(model.packages):
            group = model.packages[name]
            lines.append(f"## Package {name}")
            lines.append("")
            if group.description:
                lines.append(group.description)
                lines.append("")
            lines.append(f"**Path:** `{group.path}`")
            lines.append("")
            lines.extend(render_record(record) for record in group.records)
    elif config.group_by_type:
        groups = _group_by_type(model)
        for test_type in sorted(groups):
            lines.append(f"## {type_display_name(test_type)} tests")
            lines.append("")
            lines.extend(render_record(record) for record in groups[test_type])
    else:
        lines.append("## Tests")
        lines.append("")
        lines.extend(render_record(record) for record in _sorted_records(model))

    return "\n".join(lines)


def render_markdown(
    model: AggregatedModel,
    config: TestDocConfig | None = None,
    generated_at: datetime | None = None,
) -> str:
    """
    Render a complete Markdown document for the model.

    Args:
        model: Aggregated (optionally filtered) test model.
        config: Title, author, version and grouping options.
        generated_at: Timestamp shown in the header; defaults to now.
    """
    if config is None:
        config = TestDocConfig()
    if generated_at is None:
        generated_at = datetime.now()

    header = "\n".join([
        f"# {config.title}",
        "",
        f"**Author:** {config.author}  ",
        f"**Version:** {config.version}  ",
        f"**Generated:** {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ])

    return "\n".join([
        header,
        render_toc(model, config),
        render_statistics(model.statistics),
        render_content(model, config),
    ])
