"""
Version of the speedrun-e2e distribution.

Installed copies report their package metadata. A source checkout that was
never installed reads ``pyproject.toml`` beside the packages, but only when
that file describes this distribution.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION = "speedrun-e2e"
UNKNOWN_VERSION = "0.0.0+unknown"


def installed_version() -> Optional[str]:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return None


def checkout_version(root: pathlib.Path) -> Optional[str]:
    """Version declared by ``root/pyproject.toml``, if it is this project's."""
    try:
        with (root / "pyproject.toml").open("rb") as f:
            project = tomli.load(f).get("project", {})
    except (OSError, tomli.TOMLDecodeError):
        return None
    if project.get("name") != DISTRIBUTION:
        return None
    return project.get("version")


def resolve_version() -> str:
    return (
        installed_version()
        or checkout_version(pathlib.Path(__file__).resolve().parent.parent)
        or UNKNOWN_VERSION
    )


__version__ = resolve_version()
