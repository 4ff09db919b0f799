"""Shared pytest fixtures for manifest-helper tests."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of config resolution."""
    monkeypatch.delenv('MANIFEST_HELPER_ROOT', raising=False)
    monkeypatch.delenv('MANIFEST_HELPER_PACKAGE_MANAGER', raising=False)


@pytest.fixture
def sample_manifest():
    """Return a manifest with scripts, dependencies and an unrelated field."""
    return {
        'name': 'sample-app',
        'version': '0.3.1',
        'private': True,
        'scripts': {
            'test': 'jest',
            'build': 'tsc -p .',
        },
        'dependencies': {
            'express': '^4.18.2',
        },
        'devDependencies': {
            'typescript': '~5.2.0',
        },
    }


@pytest.fixture
def project_dir(tmp_path, sample_manifest):
    """Create a temporary project root holding package.json."""
    (tmp_path / 'package.json').write_text(json.dumps(sample_manifest, indent=2) + '\n')
    return tmp_path


@pytest.fixture
def helper_config(tmp_path):
    """HelperConfig bound to an empty temporary project root."""
    from config import HelperConfig
    return HelperConfig(project_root=tmp_path)


@pytest.fixture
def always_yes():
    """Confirmation policy that approves everything."""
    async def confirm(*_):
        return True
    return confirm


@pytest.fixture
def always_no():
    """Confirmation policy that declines everything."""
    async def confirm(*_):
        return False
    return confirm
