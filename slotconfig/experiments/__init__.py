"""Experiment (A/B test) overrides for published layouts."""

from .merge import ResolvedLayout, merge, resolve_layout

__all__ = [
    "ResolvedLayout",
    "merge",
    "resolve_layout",
]
