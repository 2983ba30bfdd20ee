"""
Scanner that turns one Python test file into TestRecords.
"""
import ast
import re
import tokenize
from pathlib import Path

from testdoc.core.annotations import interpret_annotations
from testdoc.support.exceptions import SourceParseError, SourceReadError
from testdoc.support.models import TestRecord


TEST_NAME_PREFIXES = ("test", "benchmark", "example")

# pytest.skip(...), self.skipTest(...), raise unittest.SkipTest(...)
SKIP_CALL_NAMES = frozenset({"skip", "skipTest", "SkipTest"})

COMMENT_MARKER = "#"

# Line breaks as the tokenizer sees them; str.splitlines also splits on \f and friends.
LINE_BREAK = re.compile(r"\r\n|\r|\n")

# Shebang and PEP 263 coding cookie, only meaningful on lines 1-2.
FILE_PREAMBLE = re.compile(r"^(#!|[ \t\f]*#.*?coding[:=][ \t]*[-\w.]+)")


def is_test_function(name: str) -> bool:
    """Check if a function name follows the test naming convention."""
    return name.startswith(TEST_NAME_PREFIXES)


def _string_literal(node: ast.AST | None) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


class SkipCallVisitor(ast.NodeVisitor):
    """
    Finds skip-signaling calls (``<receiver>.skip(...)`` and friends).
    Nodes are visited in source order, so the last literal reason wins.
    """

    def __init__(self):
        self.skipped = False
        self.reason: str | None = None

    def visit_Call(self, node: ast.Call):
        func = node.func
        if isinstance(func, ast.Attribute) and func.attr in SKIP_CALL_NAMES:
            self.skipped = True
            reason = self._extract_reason(node)
            if reason is not None:
                self.reason = reason
        self.generic_visit(node)

    @staticmethod
    def _extract_reason(node: ast.Call) -> str | None:
        if node.args:
            return _string_literal(node.args[0])
        # pytest.skip(reason="...") / pytest.mark.skip(reason="...")
        for keyword in node.keywords:
            if keyword.arg == "reason":
                return _string_literal(keyword.value)
        return None


def detect_skip(node: ast.FunctionDef | ast.AsyncFunctionDef) -> tuple[bool, str | None]:
    """
    Look for skip signals in a function's decorators and body.

    Returns:
        (skipped, reason). The reason is None unless a literal string was given.
    """
    visitor = SkipCallVisitor()

    for decorator in node.decorator_list:
        # Bare marker such as @pytest.mark.skip
        if isinstance(decorator, ast.Attribute) and decorator.attr in SKIP_CALL_NAMES:
            visitor.skipped = True
        visitor.visit(decorator)

    for statement in node.body:
        visitor.visit(statement)

    if not visitor.skipped:
        return False, None
    return True, visitor.reason


def _leading_comment_block(node: ast.FunctionDef | ast.AsyncFunctionDef, source_lines: list[str]) -> list[str]:
    """Collect the ``#`` lines directly above the function or its decorators."""
    first_line = min([node.lineno] + [d.lineno for d in node.decorator_list])

    block = []
    index = first_line - 2
    while index >= 0:
        stripped = source_lines[index].strip()
        if not stripped.startswith(COMMENT_MARKER):
            break
        if index < 2 and FILE_PREAMBLE.match(source_lines[index]):
            break
        block.append(stripped.lstrip(COMMENT_MARKER).strip())
        index -= 1

    block.reverse()
    return block


def extract_doc_lines(node: ast.FunctionDef | ast.AsyncFunctionDef, source_lines: list[str]) -> list[str]:
    """
    Return the documentation lines for a function: the comment block above it
    followed by its docstring. Blank lines are dropped.
    """
    lines = _leading_comment_block(node, source_lines)

    docstring = ast.get_docstring(node)
    if docstring:
        lines.extend(docstring.splitlines())

    return [line.strip() for line in lines if line.strip()]


def resolve_package_name(path: Path) -> str:
    """
    Derive the package a test file belongs to.
    tests/unit/test_api.py with __init__.py in tests/ and unit/ -> tests.unit
    Without __init__.py the parent directory name is used.
    """
    directory = path.resolve().parent

    parts = []
    current = directory
    while (current / "__init__.py").exists():
        parts.append(current.name)
        current = current.parent

    if parts:
        return ".".join(reversed(parts))
    return directory.name


def build_record(
    node: ast.FunctionDef | ast.AsyncFunctionDef,
    source_lines: list[str],
    filename: str,
    package: str,
) -> TestRecord:
    """Build the record for one test function."""
    record = TestRecord(
        name=node.name,
        file=Path(filename).name,
        line=node.lineno,
        package=package,
    )

    doc_lines = extract_doc_lines(node, source_lines)
    if doc_lines:
        interpret_annotations(doc_lines, record)

    skipped, reason = detect_skip(node)
    if skipped:
        record.skipped = True
        record.skip_reason = reason

    return record


def scan_source(source_code: str, filename: str = "<string>", package: str = "") -> list[TestRecord]:
    """
    Scan Python source text for test functions.
    Only module-level functions are considered.

    Raises:
        SourceParseError: If the source is not valid Python.
    """
    try:
        tree = ast.parse(source_code, filename=filename)
    except SyntaxError as e:
        raise SourceParseError(filename, e.lineno or 0, e.msg or str(e))
    except ValueError as e:
        # e.g. source containing null bytes
        raise SourceParseError(filename, 0, str(e))

    source_lines = LINE_BREAK.split(source_code)
    records = []
    for node in tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        if not is_test_function(node.name):
            continue
        records.append(build_record(node, source_lines, filename, package))

    return records


def scan_file(source_path: Path) -> list[TestRecord]:
    """
    Scan a test file and return one record per test function.

    Raises:
        FileNotFoundError: If the file does not exist.
        SourceReadError: If the file cannot be read or decoded.
        SourceParseError: If the file is not valid Python.
    """
    # tokenize.open honors the coding cookie and strips a UTF-8 BOM
    try:
        with tokenize.open(source_path) as f:
            source_code = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Test file not found: {source_path}")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(str(source_path), str(e))
    except SyntaxError as e:
        # unknown encoding in the coding cookie
        raise SourceReadError(str(source_path), e.msg or str(e))

    return scan_source(
        source_code,
        filename=str(source_path),
        package=resolve_package_name(source_path),
    )
