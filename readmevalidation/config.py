"""Configuration management for README validation."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

CONFIG_FILENAME = ".readmevalidation.yaml"
CONFIG_ENV_VAR = "README_VALIDATION_CONFIG"
DEFAULT_REGISTRY_DIR = Path("registry")


@dataclass
class ValidatorConfig:
    """README validation configuration."""

    registry_dir: Path = DEFAULT_REGISTRY_DIR
    icons_dir: Optional[Path] = None
    max_workers: int = 4
    verbose: bool = False

    def __post_init__(self):
        self.registry_dir = Path(self.registry_dir)
        # Shared icons live at the repo root, next to the registry directory
        if self.icons_dir is None:
            self.icons_dir = self.registry_dir.parent / ".icons"
        else:
            self.icons_dir = Path(self.icons_dir)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1 (got {self.max_workers})")

    @classmethod
    def from_file(cls, path: Path) -> "ValidatorConfig":
        """Load configuration from YAML file."""
        with path.open() as f:
            data = yaml.safe_load(f) or {}

        return cls(
            registry_dir=Path(data.get("registry_dir", DEFAULT_REGISTRY_DIR)),
            icons_dir=data.get("icons_dir"),
            max_workers=int(data.get("max_workers", 4)),
            verbose=bool(data.get("verbose", False)),
        )

    @classmethod
    def default(cls) -> "ValidatorConfig":
        """Create default configuration (run from the repo root)."""
        return cls()

    @classmethod
    def load(cls) -> "ValidatorConfig":
        """Load configuration from default locations."""
        config_path = Path(CONFIG_FILENAME)
        if config_path.exists():
            return cls.from_file(config_path)

        if env_path := os.getenv(CONFIG_ENV_VAR):
            return cls.from_file(Path(env_path))

        return cls.default()
