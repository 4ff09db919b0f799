"""Helper configuration management.

Configuration is resolved per project root:
- defaults (npm, package.json, 2-space indent)
- .manifest-helper.yaml in the project root (optional)
- environment variables (highest priority)

Resolution order for the project root:
1. $MANIFEST_HELPER_ROOT environment variable
2. Current working directory
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

SETTINGS_FILE = '.manifest-helper.yaml'
DEFAULT_MANIFEST_FILE = 'package.json'
DEFAULT_PACKAGE_MANAGER = 'npm'


class ConfigError(Exception):
    """Configuration error."""


@dataclass
class HelperConfig:
    """Configuration for a manifest helper bound to one project.

    Attributes:
        project_root: Directory holding the manifest file
        package_manager: Executable used for installs (npm, pnpm, ...)
        manifest_file: Manifest filename relative to project_root
        indent: JSON indent used when saving the manifest
    """
    project_root: Path = field(default_factory=Path.cwd)
    package_manager: str = DEFAULT_PACKAGE_MANAGER
    manifest_file: str = DEFAULT_MANIFEST_FILE
    indent: int = 2

    def __post_init__(self):
        if isinstance(self.project_root, str):
            self.project_root = Path(self.project_root)

        # Merge order: defaults → settings file → environment
        settings_file = self.project_root / SETTINGS_FILE
        if settings_file.exists():
            self._load_from_yaml(settings_file)

        if package_manager := os.environ.get('MANIFEST_HELPER_PACKAGE_MANAGER'):
            self.package_manager = package_manager

        if not self.package_manager:
            raise ConfigError("package_manager must not be empty")
        if shutil.which(self.package_manager) is None:
            logger.warning(f"Package manager '{self.package_manager}' not found on PATH")

    def _load_from_yaml(self, path: Path):
        """Apply overrides from the project settings file."""
        settings = _parse_yaml(path)

        if package_manager := settings.get('package_manager'):
            self.package_manager = str(package_manager)

        if manifest_file := settings.get('manifest_file'):
            self.manifest_file = str(manifest_file)

        if 'indent' in settings:
            indent = settings['indent']
            if not isinstance(indent, int) or isinstance(indent, bool) or indent < 0:
                raise ConfigError(f"{path}: indent must be a non-negative integer, got {indent!r}")
            self.indent = indent

    @property
    def manifest_path(self) -> Path:
        """Full path of the manifest file."""
        return self.project_root / self.manifest_file


def _parse_yaml(path: Path) -> dict:
    """Parse a YAML settings file and return contents."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def get_project_root() -> Path:
    """Discover the project root.

    Resolution order:
    1. $MANIFEST_HELPER_ROOT environment variable
    2. Current working directory
    """
    if env_path := os.environ.get('MANIFEST_HELPER_ROOT'):
        path = Path(env_path)
        if path.is_dir():
            return path
        raise ConfigError(f"MANIFEST_HELPER_ROOT={env_path} does not exist")

    return Path.cwd()


def load_helper_config(project_root: Optional[Path] = None) -> HelperConfig:
    """Build a HelperConfig for project_root (discovered when omitted)."""
    if project_root is None:
        project_root = get_project_root()
    elif not Path(project_root).is_dir():
        raise ConfigError(f"Project root not found: {project_root}")
    return HelperConfig(project_root=Path(project_root))
