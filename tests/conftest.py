"""Shared fixtures: throwaway route trees on disk."""

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

import pytest

WriteRoute: TypeAlias = Callable[..., Path]


@pytest.fixture
def routes_dir(tmp_path: Path) -> Path:
    """An empty routes directory."""
    root = tmp_path / "routes"
    root.mkdir()
    return root


@pytest.fixture
def write_route(routes_dir: Path) -> WriteRoute:
    """Write a route module (dedented) at a path relative to ``routes_dir``."""

    def write(relative: str, source: str = "") -> Path:
        path = routes_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return write
