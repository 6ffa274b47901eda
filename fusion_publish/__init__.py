"""Helpers for the Fusion application publish GitHub Action.

Each pipeline step lives in :mod:`fusion_publish.steps` and is reachable from
``python -m fusion_publish.cli <step>``. The decision logic behind the steps
(credential and environment resolution) is pure and lives in
:mod:`fusion_publish.validation`.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
