"""Shared pytest fixtures for the skeletor test suite.

Provides reusable fixtures for:
- Sample parameter mappings and validated parameter sets
- On-disk template trees and in-memory template sources
- A recording Rich console so output can be asserted on
- Destination snapshots for comparing generated trees
"""

from __future__ import annotations

import io
import stat
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from skeletor.scaffolder import ParameterSet, TemplateEntry, TemplateSource, validate_parameters


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

_ENV_VARS = (
    "SKELETOR_TEMPLATE",
    "SKELETOR_TEMPLATE_DIR",
    "SKELETOR_ON_CONFLICT",
    "SKELETOR_DRY_RUN",
    "SKELETOR_QUIET",
)


@pytest.fixture(autouse=True)
def clean_skeletor_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no SKELETOR_* variable leaks in from the developer's shell."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------


@pytest.fixture
def record_console(monkeypatch: pytest.MonkeyPatch) -> Console:
    """A wide, colourless console writing to a buffer.

    Installed as the shared console in ``skeletor.utils`` and ``skeletor.cli``
    so everything the package prints ends up in ``console.file``.
    """
    console = Console(file=io.StringIO(), width=200, color_system=None)
    monkeypatch.setattr("skeletor.utils.console", console)
    monkeypatch.setattr("skeletor.cli.console", console)
    return console


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


@pytest.fixture
def raw_params() -> dict[str, Any]:
    """Parameters for a plugin called ``helm3``."""
    return {
        "PluginName": "helm3",
        "ModulePath": "github.com/acme/helm3",
        "AuthorName": "Jane Doe",
        "AuthorEmail": "jane@example.com",
        "Description": "Helm 3 mixin for Porter",
    }


@pytest.fixture
def params(raw_params: dict[str, Any]) -> ParameterSet:
    return validate_parameters(raw_params)


@pytest.fixture
def minimal_params() -> ParameterSet:
    """Only the required parameters; every optional field is empty."""
    return validate_parameters({"PluginName": "mysample", "ModulePath": "github.com/acme/mysample"})


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------


@pytest.fixture
def make_template_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing ``{relative_path: content}`` into a fresh directory.

    String content is written as UTF-8, bytes verbatim.  An optional
    ``modes`` mapping sets permission bits per relative path.
    """
    counter = {"n": 0}

    def _make(files: dict[str, str | bytes], modes: dict[str, int] | None = None) -> Path:
        counter["n"] += 1
        root = tmp_path / f"template-{counter['n']}"
        root.mkdir()
        for rel, content in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")
            if modes and rel in modes:
                target.chmod(modes[rel])
        return root

    return _make


@pytest.fixture
def make_source() -> Callable[..., TemplateSource]:
    """Factory building an in-memory source from ``{path: content}``."""

    def _make(files: dict[str, str | bytes], modes: dict[str, int] | None = None) -> TemplateSource:
        modes = modes or {}
        entries = [
            TemplateEntry.create(path, content, mode=modes.get(path, 0o644))
            for path, content in files.items()
        ]
        return TemplateSource.from_entries(entries, name="test")

    return _make


@pytest.fixture
def snapshot() -> Callable[[Path], dict[str, tuple[bytes, int]]]:
    """Return a function mapping every file below a root to its bytes and mode."""

    def _snapshot(root: Path) -> dict[str, tuple[bytes, int]]:
        return {
            path.relative_to(root).as_posix(): (path.read_bytes(), stat.S_IMODE(path.stat().st_mode))
            for path in sorted(root.rglob("*"))
            if path.is_file()
        }

    return _snapshot
