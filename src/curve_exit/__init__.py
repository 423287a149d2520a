"""
Curve Exit Badge package initializer.

This package exposes the primary function ``analyze_curve_exit`` for
external usage.  Other internal modules (e.g. API, cache) should be
imported explicitly from their respective files.
"""

from .exit_service import analyze_curve_exit  # noqa: F401

__all__ = ["analyze_curve_exit"]
