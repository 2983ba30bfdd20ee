"""
testdoc: structured documentation from annotated Python tests.
"""

__version__ = "1.0.0"
