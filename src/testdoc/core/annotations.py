"""
Interpreter for the annotation grammar embedded in test documentation.

A documentation block is a list of lines. Lines starting with ``@`` are
annotations routed through ``ANNOTATION_HANDLERS`` in order, first match
wins. Anything else is free text that becomes the record description.

    @type: integration
    @author: Jane Doe
    @tags: api, payments
    @testcase: Refund - money goes back to the card
    @step: Issue refund - gateway answers 200
    @created: 2024-01-21
    @owner: billing-team        (unknown key, stored in metadata)
"""
from datetime import date, datetime
from typing import Callable

from testdoc.support.models import Step, TestCase, TestRecord


ANNOTATION_MARKER = "@"
DATE_FORMAT = "%Y-%m-%d"


def split_first_hyphen(text: str) -> tuple[str, str]:
    """
    Split on the first hyphen only, trimming both halves.
    The tail is empty when the text has no hyphen.
    """
    head, _, tail = text.partition("-")
    return head.strip(), tail.strip()


def parse_date(text: str) -> date | None:
    """Parse a YYYY-MM-DD date. Malformed input yields None."""
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def _apply_type(record: TestRecord, value: str) -> None:
    # Validity is checked elsewhere (is_valid_test_type)
    record.test_type = value


def _apply_author(record: TestRecord, value: str) -> None:
    record.author = value


def _apply_tags(record: TestRecord, value: str) -> None:
    for tag in value.split(","):
        record.tags.append(tag.strip())


def _apply_testcase(record: TestRecord, value: str) -> None:
    name, description = split_first_hyphen(value)
    record.test_cases.append(TestCase(name=name, description=description))


def _apply_step(record: TestRecord, value: str) -> None:
    if not record.test_cases:
        return
    action, expected = split_first_hyphen(value)
    record.test_cases[-1].steps.append(Step(action=action, expected=expected or None))


def _apply_created(record: TestRecord, value: str) -> None:
    record.created = parse_date(value)


def _apply_updated(record: TestRecord, value: str) -> None:
    record.updated = parse_date(value)


# Checked in order; the first matching prefix wins.
ANNOTATION_HANDLERS: list[tuple[str, Callable[[TestRecord, str], None]]] = [
    ("@type:", _apply_type),
    ("@author:", _apply_author),
    ("@tags:", _apply_tags),
    ("@testcase:", _apply_testcase),
    ("@step:", _apply_step),
    ("@created:", _apply_created),
    ("@updated:", _apply_updated),
]


def apply_annotation(line: str, record: TestRecord) -> None:
    """
    Apply a single ``@`` line to the record.
    Unrecognized ``@key: value`` lines land in ``record.metadata``.
    """
    for prefix, handler in ANNOTATION_HANDLERS:
        if line.startswith(prefix):
            handler(record, line[len(prefix):].strip())
            return

    if ":" in line:
        key, value = line.split(":", 1)
        key = key.removeprefix(ANNOTATION_MARKER).strip()
        record.metadata[key] = value.strip()


def interpret_annotations(lines: list[str], record: TestRecord | None = None) -> TestRecord:
    """
    Populate a TestRecord from the lines of one documentation block.

    Args:
        lines: Comment or docstring lines with comment markers removed.
        record: Record to fill in. A blank one is created when omitted.

    Returns:
        The populated record.
    """
    if record is None:
        record = TestRecord(name="")

    description_parts = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(ANNOTATION_MARKER):
            apply_annotation(line, record)
        else:
            description_parts.append(line)

    record.description = " ".join(description_parts)
    return record
