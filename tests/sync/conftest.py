"""
Shared fixtures for the synchronization tests.

Tests run against real JSON content services in a temporary project, so the
engine sees the same files and paths it would see in production.
"""

import json
import os
from pathlib import Path

import pytest

from core.content.resources import Resource
from core.content.session import AutoUserInterface
from core.content.workspace import ContentWorkspace
from core.models.config import ProjectConfig
from core.sync.tasks import InlineTaskHost


def write_resource_file(path: Path, resource: Resource) -> str:
    """Write a resource the way an outside tool would, bypassing the provider."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"type": type(resource).type_name(), "data": resource.model_dump(mode="json")}
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return os.path.normpath(str(path))


@pytest.fixture
def project_config(tmp_path):
    """Create a project with empty data and media trees."""
    root = tmp_path / "game"
    (root / "Data").mkdir(parents=True)
    (root / "Source" / "Media").mkdir(parents=True)
    return ProjectConfig(name="game", path=root)


@pytest.fixture
def data_dir(project_config) -> Path:
    return project_config.data_dir


@pytest.fixture
def media_dir(project_config) -> Path:
    return project_config.media_dir


@pytest.fixture
def ui():
    return AutoUserInterface(reload_answer=True)


@pytest.fixture
def workspace(project_config, ui):
    return ContentWorkspace(project_config, ui=ui)


@pytest.fixture
def engine(workspace):
    """Engine with inline propagation and no quiescence window."""
    workspace.config.engine.quiescence_ms = 0
    workspace.config.engine.reimport_grace_ms = 0
    return workspace.build_engine(task_host=InlineTaskHost())


@pytest.fixture
def write_resource():
    """Return a writer for resource files created outside the editor."""
    return write_resource_file
