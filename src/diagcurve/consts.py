"""Central module containing tolerances and defaults for the curve engine"""

from __future__ import annotations

from typing import Tuple

# Degeneracy tolerance for the conic subclassifier
DEFAULT_CLASSIFY_TOLERANCE: float = 0.01

# Largest linear denominator coefficient accepted after regularization
REGULARIZED_LINEAR_TOLERANCE: float = 1.0e-3

DEFAULT_SIGMA: Tuple[float, float] = (1.0, 1.0)
DEFAULT_RANGE: Tuple[float, float] = (0.0, 1.0)

# Number of segments used when a path primitive is turned into a polyline
DEFAULT_POLYGONIZE_STEPS: int = 64
