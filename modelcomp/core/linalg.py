"""Least-squares kernels used by the resampling routines.

All fits go through pivoted QR (no explicit matrix inversion). Rank is decided
with R's ``lm.fit`` rule (``tol * max|diag(R)|``), so rank-deficient resamples
are fitted on their estimable column space exactly like ``lm`` would.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import scipy.linalg as sla

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = ["qr_fitted", "rank_from_diag", "r_squared"]

# R's lm.fit default tolerance
QR_TOL: float = 1e-7


def rank_from_diag(diagR: NDArray[np.float64], *, tol: float = QR_TOL) -> int:
    """Numerical rank from the diagonal of a pivoted R factor."""
    d = np.abs(np.asarray(diagR, dtype=np.float64).reshape(-1))
    if d.size == 0:
        return 0
    thresh = float(tol) * float(np.max(d))
    return int(np.sum(d > thresh))


def qr_fitted(
    X: NDArray[np.float64], y: NDArray[np.float64], *, tol: float = QR_TOL,
) -> tuple[NDArray[np.float64], int]:
    """Return least-squares fitted values of ``y`` on ``X`` and the rank of ``X``."""
    Xd = np.asarray(X, dtype=np.float64)
    yd = np.asarray(y, dtype=np.float64).reshape(-1)
    if Xd.shape[1] == 0:
        return np.zeros_like(yd), 0
    Q, R, _P = sla.qr(Xd, mode="economic", pivoting=True)
    r = rank_from_diag(np.diag(R), tol=tol)
    if r == 0:
        return np.zeros_like(yd), 0
    Qr = Q[:, :r]
    return Qr @ (Qr.T @ yd), r


def r_squared(
    X: NDArray[np.float64],
    y: NDArray[np.float64],
    *,
    has_constant: bool = True,
    tol: float = QR_TOL,
) -> float:
    """Coefficient of determination of the OLS fit of ``y`` on ``X``.

    Uses the centered total sum of squares when the model has a constant and
    the uncentered one otherwise (statsmodels/R convention). Returns NaN when
    the total sum of squares is zero.
    """
    yd = np.asarray(y, dtype=np.float64).reshape(-1)
    fitted, _rank = qr_fitted(X, yd, tol=tol)
    resid = yd - fitted
    ssr = float(resid @ resid)
    centered = yd - yd.mean() if has_constant else yd
    tss = float(centered @ centered)
    if tss <= 0.0:
        return float("nan")
    return 1.0 - ssr / tss
