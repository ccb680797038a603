# Copyright (C) 2020-2021 Markus Wallerberger and others
# SPDX-License-Identifier: MIT
"""
Auxiliary module for root finding routines.
"""
import numpy as np


def find_all(f, xgrid, fx=None, *, xtol=None, maxiter=None):
    """Find all roots of function between gridpoints.

    Returns a pair ``(roots, converged)``.  Sign changes of ``f`` between
    neighbouring grid points are bisected until the bracket is narrower than
    ``xtol``.  If ``maxiter`` bisection steps do not suffice, the midpoints
    of the current brackets are returned as best estimate and ``converged``
    is false.  ``fx``, if given, are the precomputed values ``f(xgrid)``.
    """
    xgrid = np.asarray(xgrid)
    if xgrid.ndim != 1:
        raise ValueError("grid must be a one-dimensional array")
    if xtol is None:
        xtol = np.finfo(xgrid.dtype).eps * np.abs(xgrid).max()
    if maxiter is None:
        maxiter = np.iinfo(int).max

    # First, extract roots that lie directly on the grid points
    if fx is None:
        fx = f(xgrid)
    fx = np.asarray(fx)
    hit = fx == 0
    x_hit = xgrid[hit]

    # Next, find out where the sign changes (sign bit flips) remove the
    # previously found points from consideration (we need to remove both
    # directions for transitions + -> - and - -> +)
    sign_change = np.signbit(fx[:-1]) != np.signbit(fx[1:])
    sign_change &= ~hit[:-1] & ~hit[1:]
    if not sign_change.any():
        return x_hit, True

    # sign_change[i] being set means that the sign changes from xgrid[i] to
    # xgrid[i+1].  This means a corresponds to those xgrid[i] and b to those
    # xgrid[i+1] where sign_change[i] is set.
    where_a = np.hstack((sign_change, False))
    where_b = np.hstack((False, sign_change))
    a = xgrid[where_a]
    b = xgrid[where_b]
    fa = fx[where_a]

    x_bisect, converged = _bisect_cont(f, a, b, fa, xtol, maxiter)
    return np.sort(np.hstack([x_hit, x_bisect])), converged


def _bisect_cont(f, a, b, fa, xtol, maxiter):
    """Bisect all brackets simultaneously"""
    for _ in range(maxiter):
        if not (b - a >= xtol).any():
            return .5 * (a + b), True
        mid = 0.5 * (a + b)
        fmid = f(mid)
        towards_a = np.signbit(fa) != np.signbit(fmid)
        a = np.where(towards_a, a, mid)
        fa = np.where(towards_a, fa, fmid)
        b = np.where(towards_a, mid, b)

    return .5 * (a + b), not (b - a >= xtol).any()
