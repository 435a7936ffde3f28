"""
hyperevm_vrf.cli
================

Command-line interface (`hyperevm-vrf`). Typer is only imported when the CLI
is actually used, so `import hyperevm_vrf` stays light.

    $ hyperevm-vrf --help
    >>> from hyperevm_vrf.cli import main
    >>> main(["info"])
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, List, Optional

from ..version import __version__

__all__: List[str] = ["__version__", "main", "run", "app"]

_SUBMODULE = "hyperevm_vrf.cli.commands"


def _load() -> Any:
    return import_module(_SUBMODULE)


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name == "app":
        return _load().app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    return int(_load().main(argv))


def run(argv: Optional[list[str]] = None) -> int:
    """Alias for :func:`main`."""
    return main(argv)
