"""
Version information for the NEAR user SDK.

Installed builds report the distribution metadata; a source checkout reads
``pyproject.toml`` next to the package.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "near-user-sdk"
FALLBACK_VERSION = "0.1.0"


def _version_from_pyproject(root: pathlib.Path) -> str:
    try:
        with (root / "pyproject.toml").open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION


try:
    __version__ = importlib.metadata.version(DISTRIBUTION)
except importlib.metadata.PackageNotFoundError:
    __version__ = _version_from_pyproject(pathlib.Path(__file__).resolve().parent.parent)
