"""Pytest configuration and fixtures for ghrelease tests"""
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ghrelease.client import Asset, Release, ReleaseClient


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real ~/.ghrelease.yaml and credential env vars"""
    monkeypatch.setenv("GHRELEASE_SETTINGS", str(tmp_path / "settings.yaml"))
    monkeypatch.delenv("GHRELEASE_USERNAME", raising=False)
    monkeypatch.delenv("GHRELEASE_PASSWORD", raising=False)
    monkeypatch.delenv("GHRELEASE_LOG_LEVEL", raising=False)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def git_project(temp_dir):
    """Provide a temporary project directory with a .git folder"""
    (temp_dir / ".git").mkdir()
    yield temp_dir


def make_release(id=1, name="1.0.0", tag="1.0.0", assets=None):
    return Release(
        id=id,
        repository_id="owner/repo",
        name=name,
        tag_name=tag,
        upload_url=f"https://uploads.github.com/repos/owner/repo/releases/{id}/assets{{?name,label}}",
        assets=list(assets or []),
    )


def make_asset(id=10, name="app.zip"):
    return Asset(id=id, name=name, content_type="application/zip", size=3)


@pytest.fixture
def fake_client():
    """A ReleaseClient mock with no existing release and no assets"""
    client = MagicMock(spec=ReleaseClient)
    client.find_release_by_name.return_value = None
    client.create_release.return_value = make_release(id=2)
    client.list_assets.return_value = []
    client.upload_asset.side_effect = lambda release, path, content_type: make_asset(name=Path(path).name)
    return client
