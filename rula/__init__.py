"""Public package surface for rula.

Exports ``main`` for programmatic CLI invocation.
The discovery and ranking engine lives in submodules under ``rula``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
