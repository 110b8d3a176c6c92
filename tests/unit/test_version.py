"""Test for equipstic.__version__."""

import tomllib
from pathlib import Path

import equipstic


def test_versions_are_in_sync() -> None:
    """Checks if the pyproject.toml and package __version__ are in sync."""
    pyproj_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    with pyproj_path.open("rb") as fd:
        pyproj = tomllib.load(fd)

    assert equipstic.__version__ == pyproj["project"]["version"]
