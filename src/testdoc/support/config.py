"""
Configuration management for testdoc.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
import sys

import yaml

from testdoc.support.exceptions import ConfigError

# Compat for Python < 3.11
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


DEFAULT_TITLE = "Test Documentation"
DEFAULT_AUTHOR = "Generated automatically"
DEFAULT_VERSION = "1.0.0"
DEFAULT_INCLUDE_PATTERNS = ["test_*.py", "*_test.py"]
DEFAULT_CONFIG_FILENAME = "testdoc.yaml"


@dataclass
class TestDocConfig:
    """Configuration settings for testdoc."""
    __test__ = False

    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR
    version: str = DEFAULT_VERSION
    include_skipped: bool = True
    group_by_type: bool = True
    group_by_package: bool = False
    include_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS)
    )
    exclude_patterns: list[str] = field(default_factory=list)
    exclude_dirs: list[str] = field(
        default_factory=lambda: [
            "node_modules",
            ".venv",
            "venv",
            "__pycache__",
            ".git",
            "build",
            "dist",
            ".tox",
            ".eggs",
        ]
    )


def _from_mapping(data: dict) -> TestDocConfig:
    """Build a config from a mapping, ignoring keys we do not know."""
    valid_keys = {f.name for f in fields(TestDocConfig)}
    filtered_data = {k: v for k, v in data.items() if k in valid_keys}
    return TestDocConfig(**filtered_data)


def _load_toml_section(config_path: Path) -> dict:
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get("testdoc", {})


def load_config(path: Path | None = None) -> TestDocConfig:
    """
    Load configuration.
    Args:
        path: A YAML or TOML config file, OR a project directory whose
              pyproject.toml may carry a [tool.testdoc] table.
              If None, the current working directory is used.
    """
    if path is None:
        path = Path.cwd()

    if path.is_dir():
        config_path = path / "pyproject.toml"
        if not config_path.exists():
            return TestDocConfig()
        try:
            return _from_mapping(_load_toml_section(config_path))
        except (tomllib.TOMLDecodeError, TypeError, AttributeError):
            # A broken pyproject.toml should not stop documentation runs
            return TestDocConfig()

    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    if path.suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {path}: {e}")
        if data is None:
            return TestDocConfig()
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")
        return _from_mapping(data)

    try:
        return _from_mapping(_load_toml_section(path))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}")


def save_config(config: TestDocConfig, path: Path) -> None:
    """Write the configuration as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(asdict(config), f, sort_keys=False, allow_unicode=True)


def validate_config(config: TestDocConfig) -> TestDocConfig:
    """Fill in blank fields with their defaults."""
    if not config.title:
        config.title = DEFAULT_TITLE
    if not config.author:
        config.author = DEFAULT_AUTHOR
    if not config.version:
        config.version = DEFAULT_VERSION

    if config.include_patterns is None:
        config.include_patterns = list(DEFAULT_INCLUDE_PATTERNS)
    if config.exclude_patterns is None:
        config.exclude_patterns = []
    if config.exclude_dirs is None:
        config.exclude_dirs = []

    return config
