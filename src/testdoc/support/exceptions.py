"""
Custom exceptions for testdoc.
"""

class TestDocError(Exception):
    """Base exception for all testdoc errors."""
    __test__ = False


class SourceParseError(TestDocError):
    """Raised when a test file cannot be parsed."""
    def __init__(self, file_path: str, line_number: int, message: str):
        self.file_path = file_path
        self.line_number = line_number
        self.message = message
        super().__init__(f"Syntax error in {file_path} at line {line_number}: {message}")


class SourceReadError(TestDocError):
    """Raised when a test file exists but cannot be read."""
    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        self.message = message
        super().__init__(f"Cannot read {file_path}: {message}")


class DirectoryWalkError(TestDocError):
    """Raised when the root of a directory walk is missing or unreadable."""
    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Cannot scan {path}: {message}")


class ConfigError(TestDocError):
    """Raised when an explicitly requested config file is missing or malformed."""
    pass
