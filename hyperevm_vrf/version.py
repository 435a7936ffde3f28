"""Package version. The installed distribution's metadata wins over the source tree's."""

from __future__ import annotations

from importlib import metadata

DIST_NAME = "hyperevm-vrf"

# Keep in step with pyproject.toml
__version__ = "0.2.0"


def version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return __version__


__all__ = ["__version__", "DIST_NAME", "version"]
