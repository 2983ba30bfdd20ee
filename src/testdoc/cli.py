"""
testdoc CLI Entry Point.
"""

import argparse
import sys
from pathlib import Path

from testdoc import __version__
from testdoc.core.aggregator import aggregate_directory
from testdoc.core.filters import filter_by_author, filter_by_tags, filter_by_type
from testdoc.core.statistics import most_common_type, type_percentages
from testdoc.rendering.markdown_renderer import render_markdown
from testdoc.support.config import (
    DEFAULT_CONFIG_FILENAME,
    TestDocConfig,
    load_config,
    save_config,
    validate_config,
)
from testdoc.support.exceptions import TestDocError
from testdoc.support.file_operations import append_document, write_document
from testdoc.support.models import TEST_TYPES, AggregatedModel, is_valid_test_type
from testdoc.watch import watch_directory


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="testdoc: Generate Markdown documentation from annotated Python tests.",
        epilog="Supported test types: " + ", ".join(TEST_TYPES),
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory (or single test file) to analyze. Defaults to the current directory.",
    )

    parser.add_argument(
        "--output",
        "-o",
        default="test-documentation.md",
        help="Output file for the documentation (default: test-documentation.md).",
    )

    parser.add_argument(
        "--config",
        help="Path to a YAML or TOML configuration file. "
        "Defaults to [tool.testdoc] in ./pyproject.toml.",
    )

    parser.add_argument(
        "--version", action="version", version=f"testdoc {__version__}"
    )

    parser.add_argument("--type", dest="test_type", help="Only document tests of this type.")

    parser.add_argument("--author", help="Only document tests by this author.")

    parser.add_argument(
        "--tags", help="Only document tests carrying any of these comma-separated tags."
    )

    parser.add_argument(
        "--append",
        action="store_true",
        help="Append to the output file instead of overwriting it.",
    )

    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the documentation instead of writing a file.",
    )

    parser.add_argument(
        "--init",
        action="store_true",
        help=f"Write a default {DEFAULT_CONFIG_FILENAME} and exit.",
    )

    parser.add_argument(
        "--watch",
        action="store_true",
        help="Watch for test file changes and regenerate the documentation.",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output."
    )

    return parser.parse_args(argv)


def split_tags(raw: str) -> list[str]:
    """Split a comma-separated tag list, dropping empty entries."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def apply_filters(model: AggregatedModel, args: argparse.Namespace) -> AggregatedModel:
    """Apply type, author and tag filters in that order."""
    if args.test_type:
        model = filter_by_type(model, args.test_type)
    if args.author:
        model = filter_by_author(model, args.author)
    if args.tags:
        model = filter_by_tags(model, split_tags(args.tags))
    return model


def print_summary(model: AggregatedModel, output: str | None):
    """Print the statistics summary after a run."""
    stats = model.statistics
    if output:
        print(f"✓ Documentation written to: {output}")
    print("Statistics:")
    print(f"   - Total tests: {stats.total}")
    print(f"   - Active:      {stats.active}")
    print(f"   - Skipped:     {stats.skipped}")
    print(f"   - Packages:    {stats.package_count}")

    if stats.type_distribution:
        print("   - By type:")
        percentages = type_percentages(stats)
        for test_type, count in stats.type_distribution.items():
            print(f"     * {test_type}: {count} ({percentages[test_type]:.1f}%)")
        top_type, top_count = most_common_type(stats)
        print(f"   - Most common: {top_type} ({top_count})")


def generate(root: Path, config: TestDocConfig, args: argparse.Namespace) -> int:
    """
    Aggregate, filter, render and write one documentation run.
    Returns exit code.
    """
    if args.verbose:
        print(f"Scanning {root}...")

    model = aggregate_directory(root, config)

    if args.verbose:
        for skipped in model.skipped_files:
            print(f"  ✗ Skipped {skipped.path}: {skipped.reason}")

    model = apply_filters(model, args)

    if model.statistics.total == 0:
        print(f"No tests found in: {root}")
        if args.test_type or args.author or args.tags:
            print("Try relaxing the filters or checking the directory.")
        return 1

    markdown = render_markdown(model, config)

    if args.stdout:
        print(markdown)
        return 0

    output_path = Path(args.output)
    if args.append:
        append_document(output_path, markdown)
    else:
        write_document(output_path, markdown)

    print_summary(model, str(output_path))
    return 0


def run(args: argparse.Namespace) -> int:
    """Main command logic.
    Returns exit code (0 for success, non-zero for error).
    """
    if args.init:
        target = Path(DEFAULT_CONFIG_FILENAME)
        if target.exists():
            print(f"Error: {target} already exists.")
            return 1
        save_config(TestDocConfig(), target)
        print(f"✓ Created {target}")
        return 0

    if args.test_type and not is_valid_test_type(args.test_type):
        print(f"Error: Unknown test type: {args.test_type}")
        print(f"Supported types: {', '.join(TEST_TYPES)}")
        return 1

    try:
        config = validate_config(load_config(Path(args.config) if args.config else None))
    except TestDocError as e:
        print(f"Error loading configuration: {e}")
        return 1

    root = Path(args.path).resolve()

    if args.watch:
        try:
            generate(root, config, args)
        except TestDocError as e:
            print(f"Error: {e}")
            return 1

        def regenerate():
            generate(root, config, args)

        try:
            watch_directory(root, config, regenerate)
            return 0
        except KeyboardInterrupt:
            return 0

    try:
        return generate(root, config, args)
    except TestDocError as e:
        print(f"Error: {e}")
        return 1
    except OSError as e:
        print(f"Error writing documentation: {e}")
        return 1


def main():
    """Entry point for console script."""
    sys.exit(run(parse_args()))


if __name__ == "__main__":
    main()
