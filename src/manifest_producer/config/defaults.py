"""Default configuration values and paths."""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAMES = [
    "manifest-producer.yaml",
    "manifest-producer.yml",
    ".manifest-producer.yaml",
    ".manifest-producer.yml",
]

CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "manifest-producer",
    Path.home(),
]

DEFAULT_OUTPUT_DIR = "./manifest-produced"
DEFAULT_MAX_BACKTRACK = 32
DEFAULT_JSON_INDENT = 2
