"""Exceptions raised by the curve engine.

Two categories are kept apart:

* ``CurveSpecError`` reports bad user geometry (unordered range, non-positive
  sigma, degenerate control points, a pole inside the range). It is a
  ``ValueError`` and callers may recover from it.
* ``CurveInvariantError`` signals that an algebra invariant failed during
  regularization or classification. It derives from ``AssertionError`` so that
  handlers written for bad input never swallow it.
"""

from __future__ import annotations


class CurveSpecError(ValueError):
    """Invalid curve specification supplied by the caller."""


class CurveInvariantError(AssertionError):
    """Internal consistency check failed; the computation cannot continue."""
