"""Project manifest (package.json) management for scaffolding.

PackageHelper owns a single in-memory manifest for one project. It loads the
manifest from the project root (or synthesizes a default one), reports which
dependencies are missing, installs them through the package manager and
merges script entries under a caller-supplied confirmation policy.

Confirmation policies are async callables so interactive front ends can
prompt without blocking the event loop:

    async def always_yes(*_):
        return True

    helper = PackageHelper(load_helper_config())
    await helper.init('My Project', always_yes)
    await helper.update_scripts({'lint': 'eslint .'}, always_yes)
    helper.save()
"""

import json
import logging
import re
import unicodedata
from pathlib import Path
from typing import Awaitable, Callable, Optional

from common import CommandResult, run_command
from config import ConfigError, HelperConfig, load_helper_config

logger = logging.getLogger(__name__)

# npm rejects names longer than this
MAX_NAME_LENGTH = 214

# Used when a raw name has no usable characters at all
FALLBACK_NAME = 'project'

INSTALL_ARGS = ['install', '--ignore-scripts', '--silent']

# Acronym before a capitalized word, capitalized/lowercase word, acronym, digits
_WORD_RE = re.compile(r'[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+')

ConfirmInit = Callable[[], Awaitable[bool]]
ConfirmScript = Callable[[str], Awaitable[bool]]
Runner = Callable[..., CommandResult]


def to_valid_name(raw: str) -> str:
    """Normalize a free-form title into a package name.

    Folds accented letters to ASCII, splits on whitespace, punctuation and
    camel-case boundaries, lowercases and joins with hyphens:
    'Some CoolTitle Here' -> 'some-cool-title-here'.
    Idempotent.
    """
    decomposed = unicodedata.normalize('NFKD', raw)
    folded = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    words = _WORD_RE.findall(folded)
    name = '-'.join(word.lower() for word in words)
    name = name[:MAX_NAME_LENGTH].rstrip('-')
    return name or FALLBACK_NAME


def default_manifest(name: str) -> dict:
    """Build a fresh default manifest for a project called name."""
    return {
        'name': name,
        'version': '1.0.0',
        'description': '',
        'scripts': {},
        'dependencies': {},
        'devDependencies': {},
    }


class PackageHelper:
    """Stateful facade over a project's manifest file and package manager."""

    def __init__(self, config: Optional[HelperConfig] = None, runner: Optional[Runner] = None):
        """Initialize the helper.

        Args:
            config: Project configuration. Discovered from the environment when omitted.
            runner: Callable taking a command list (and cwd=) and returning a
                CommandResult. Defaults to common.run_command.
        """
        self.config = config or load_helper_config()
        self._runner = runner
        self.package_json: Optional[dict] = None

    def _manifest(self) -> dict:
        if self.package_json is None:
            raise ConfigError("Manifest not loaded; call init() first")
        return self.package_json

    def load(self) -> Optional[dict]:
        """Read the manifest file from the project root.

        Returns:
            Parsed manifest, or None when the file does not exist.

        Raises:
            OSError: If the file exists but cannot be read
            json.JSONDecodeError: If the file is not valid JSON
        """
        path = self.config.manifest_path
        try:
            with open(path, encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            logger.debug(f"No manifest at {path}")
            return None

    async def init(self, default_name: str, confirm_overwrite: ConfirmInit) -> bool:
        """Establish the working manifest.

        Uses the manifest on disk when there is one, otherwise a default
        manifest named after default_name. Nothing is written; call save().

        confirm_overwrite is part of the confirmation-policy interface shared
        with update_scripts. Whether a manifest exists alone decides the
        branch here, so it is not consulted.

        Returns:
            True if a default manifest was created, False if one was loaded.

        Raises:
            ConfigError: If the manifest file does not hold a JSON object
        """
        path = self.config.manifest_path
        package_json = self.load()
        if package_json is not None or path.exists():
            if not isinstance(package_json, dict):
                raise ConfigError(
                    f"{path} must contain a JSON object, got {type(package_json).__name__}"
                )
            self.package_json = package_json
            logger.debug(f"Loaded manifest from {path}")
            return False

        self.package_json = default_manifest(self.to_valid_name(default_name))
        logger.info(f"No {self.config.manifest_file} found, using default manifest "
                    f"'{self.package_json['name']}'")
        return True

    def to_valid_name(self, raw: str) -> str:
        """Normalize raw into a valid manifest name (see to_valid_name)."""
        return to_valid_name(raw)

    def get_scripts(self) -> dict:
        """Return the manifest's scripts mapping (the live object, or {} if unset)."""
        scripts = self._manifest().get('scripts')
        return scripts if scripts is not None else {}

    def get_missing_dependencies(self, target_dependencies: list[str]) -> list[str]:
        """Return the target dependencies found in neither dependencies nor devDependencies.

        Input order is preserved.
        """
        manifest = self._manifest()
        installed = set(manifest.get('dependencies') or {})
        installed.update(manifest.get('devDependencies') or {})
        return [dep for dep in target_dependencies if dep not in installed]

    async def install_dependencies(self, target_dependencies: list[str]) -> bool:
        """Install whichever target dependencies are missing.

        The package manager is invoked even when nothing is missing, in which
        case it installs what the manifest already declares.

        Returns:
            True if the package manager wrote nothing to stderr. Failures are
            logged, never raised.
        """
        missing = self.get_missing_dependencies(target_dependencies)
        cmd = [self.config.package_manager, *INSTALL_ARGS, *missing]

        if missing:
            logger.info(f"Installing {len(missing)} dependencies: {', '.join(missing)}")
        else:
            logger.info("No missing dependencies, running plain install")

        runner = self._runner or run_command
        result = runner(cmd, cwd=self.config.project_root)
        if not result.success:
            logger.error(f"{self.config.package_manager} install failed: {result.stderr.strip()}")
            return False
        return True

    async def update_scripts(self, target_scripts: dict, confirm_overwrite: ConfirmScript) -> bool:
        """Merge target_scripts into the manifest's scripts.

        Missing scripts are added. A script that already exists is replaced
        only when confirm_overwrite(name) resolves True; confirmations are
        awaited one at a time in target_scripts order. Scripts not named in
        target_scripts are left alone.

        Returns:
            True if any script was added or replaced.
        """
        manifest = self._manifest()
        existing = self.get_scripts()
        edits = False

        for name, command in target_scripts.items():
            if name in existing:
                if not await confirm_overwrite(name):
                    logger.debug(f"Keeping existing script '{name}': {existing[name]}")
                    continue
                logger.info(f"Replacing script '{name}': {existing[name]} -> {command}")
            else:
                logger.info(f"Adding script '{name}': {command}")
            if manifest.get('scripts') is None:
                manifest['scripts'] = existing
            existing[name] = command
            edits = True

        return edits

    def save(self) -> Path:
        """Write the working manifest back to the project root.

        Returns:
            Path of the written manifest file.
        """
        manifest = self._manifest()
        path = self.config.manifest_path
        with open(path, 'w', encoding='utf-8') as f:
            f.write(json.dumps(manifest, indent=self.config.indent, ensure_ascii=False) + '\n')
        logger.debug(f"Wrote manifest to {path}")
        return path
