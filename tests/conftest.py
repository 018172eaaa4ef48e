"""Shared test fixtures for hathor tests.

Fixtures build real settings and transports rooted in temporary
directories. Loggers are mocks so tests can assert on emitted events.
"""

import importlib
import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from hathor.api.transport import Transport
from hathor.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep HATHOR_* variables and stray config files out of every test."""
    for key in list(os.environ):
        if key.startswith("HATHOR_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_text("<h1>home</h1>")
    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>docs</h1>")
    (root / "app.js").write_text("console.log('hi')")
    (root / "page.html").write_text("<p>{{ title }} {{ params.name }}</p>")
    return root


@pytest.fixture
def routes_path(tmp_path: Path) -> Path:
    path = tmp_path / "routes"
    path.mkdir()
    return path


@pytest.fixture
def write_route_module(routes_path: Path) -> Callable[[str, str], Path]:
    """Write ``source`` to ``<routes_path>/<relative>``."""

    def write(relative: str, source: str) -> Path:
        target = routes_path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source)
        return target

    return write


@pytest.fixture
def write_module(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Callable[[str, str], str]]:
    """Write an importable top-level module and return its name."""
    modules_dir = tmp_path / "modules"
    modules_dir.mkdir()
    monkeypatch.syspath_prepend(str(modules_dir))
    written: list[str] = []

    def write(name: str, source: str) -> str:
        (modules_dir / f"{name}.py").write_text(source)
        importlib.invalidate_caches()
        written.append(name)
        return name

    yield write

    for name in written:
        sys.modules.pop(name, None)


@pytest.fixture
def make_settings(web_root: Path, routes_path: Path) -> Callable[..., Settings]:
    def make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "web_root": web_root,
            "routes_path": routes_path,
            "server": {"host": "127.0.0.1", "port": 0},
        }
        values.update(overrides)
        return Settings(**values)

    return make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock(name="logger")


@pytest.fixture
def transport(web_root: Path, mock_logger: MagicMock) -> Transport:
    return Transport(files_relative_to=web_root, logger=mock_logger)


@pytest.fixture
def logged_events() -> Callable[..., list[str]]:
    """Event names passed to ``logger.<level>``."""

    def events(logger: MagicMock, level: str = "info") -> list[str]:
        return [c.args[0] for c in getattr(logger, level).call_args_list]

    return events
