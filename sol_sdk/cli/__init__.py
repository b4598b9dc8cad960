"""
sol_sdk.cli
===========

Command-line interface for the Python SDK, installed as the `sol-sdk`
console script.

Quick usage
-----------
- From Python:
    >>> from sol_sdk.cli import main
    >>> main(["version"])

- From shell:
    $ sol-sdk --help
"""

from __future__ import annotations

from .main import app, main, run

__all__ = ["app", "main", "run"]
