"""manifest-producer — per-function syscall manifests for ELF binaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from manifest_producer.version import __version__

if TYPE_CHECKING:
    from manifest_producer.config.models import ManifestConfig


@dataclass
class ManifestContext:
    """Dependency-injection container shared across CLI commands."""

    config: ManifestConfig | None = None
    json_logs: bool = False

    def ensure_config(self) -> ManifestConfig:
        if self.config is None:
            from manifest_producer.config.loader import load_config

            self.config = load_config()
        return self.config


__all__ = ["ManifestContext", "__version__"]
