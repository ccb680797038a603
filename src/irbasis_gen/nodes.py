# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
"""
Adaptive placement of the section edges for the piecewise expansion.

The singular functions of the kernel vary on a length scale of about 1/Λ
close to the interval boundaries, but are smooth in the middle.  We thus
place the section edges at the roots of the most oscillatory (last) even
singular function, which we estimate from a cheap double precision SVD of
the kernel sampled on a double-exponential mesh.
"""
from warnings import warn
import numpy as np

from . import _roots
from . import _util
from . import svd

SV_CUTOFF = 1e-12
N_MESH = 250
XTOL = 1e-12
MAXITER = 250

# The mesh parameter t runs over [-T_MAX, T_MAX], which puts the outermost
# mesh points at a distance of about 2e-14 from either end of [0, 1].
T_MAX = 3.0


def estimate_section_edges(K, sv_cutoff=SV_CUTOFF, *, n_mesh=N_MESH,
                           xtol=XTOL, maxiter=MAXITER):
    """Estimate section edges for the reduced kernel on ``[0, 1]``.

    Given a centrosymmetric kernel ``K``, compute the SVD of its even part in
    double precision, select the last singular function with a singular value
    ``s[l] >= sv_cutoff * s[0]``, and locate its roots on ``(0, 1)``.  Roots
    are refined by bisection on the Nyström interpolant of the singular
    function until the bracket is narrower than ``xtol``, using at most
    ``maxiter`` steps.

    If the refinement does not converge, the best estimate is used and a
    ``NodeConvergenceWarning`` is issued: the placement of the edges only
    affects the accuracy, not the orthonormality of the basis.

    Returns a pair ``(edges_x, edges_y)`` of strictly increasing float arrays
    starting at 0 and ending at 1.
    """
    if not K.is_centrosymmetric:
        raise ValueError("kernel must be centrosymmetric")
    if not (0 < sv_cutoff < 1):
        raise _util.ConfigurationError("cutoff must be between 0 and 1")

    K_even = K.get_symmetrized(+1)
    x, w = _tanh_sinh_mesh(n_mesh)
    sqrtw = np.sqrt(w)
    amat = sqrtw[:, None] * K_even(x[:, None], x[None, :]) * sqrtw[None, :]
    u, s, v = svd.compute(amat, 'accurate')

    l = max(np.count_nonzero(s >= sv_cutoff * s[0]) - 1, 0)
    u_weighted = sqrtw * u[:, l] / s[l]
    v_weighted = sqrtw * v[:, l] / s[l]

    # Nystroem interpolants: since A v == s u, we have on the mesh
    # u(x[i]) == u[i] / sqrt(w[i]), and the same expression extends to any x.
    def ufunc(xi):
        return K_even(xi[:, None], x[None, :]) @ v_weighted

    def vfunc(yi):
        return u_weighted @ K_even(x[:, None], yi[None, :])

    roots_x, conv_x = _roots.find_all(ufunc, x, u[:, l] / sqrtw,
                                      xtol=xtol, maxiter=maxiter)
    roots_y, conv_y = _roots.find_all(vfunc, x, v[:, l] / sqrtw,
                                      xtol=xtol, maxiter=maxiter)
    if not (conv_x and conv_y):
        warn(f"Root refinement for section edges did not converge to "
             f"{xtol:.2g} within {maxiter} iterations.  Using best estimate.",
             _util.NodeConvergenceWarning, 2)

    return edges_from_roots(roots_x), edges_from_roots(roots_y)


def edges_from_roots(roots):
    """Section edges on ``[0, 1]`` with the roots in between"""
    roots = np.asarray(roots, float)
    roots = roots[(roots > 0) & (roots < 1)]
    return np.unique(np.hstack([0.0, roots, 1.0]))


def mirror_edges(edges):
    """Extend section edges on ``[0, 1]`` to ``[-1, 1]`` by reflection"""
    edges = np.asarray(edges)
    if edges[0] != 0:
        raise ValueError("edges must start at zero")
    if not (edges[1:] > edges[:-1]).all():
        raise ValueError("edges must be strictly increasing")
    return np.hstack([-edges[:0:-1], edges])


def _tanh_sinh_mesh(n):
    """Double exponential quadrature mesh on ``(0, 1)``.

    Returns points ``x`` and weights ``w``, where the substitution::

        x(t) == (1 + tanh(pi/2 * sinh(t))) / 2

    clusters points double-exponentially towards both ends of the interval.
    """
    t, dt = np.linspace(-T_MAX, T_MAX, n, retstep=True)
    arg = np.pi * np.sinh(t)
    x = 1 / (1 + np.exp(-arg))
    xc = 1 / (1 + np.exp(arg))
    w = np.pi * np.cosh(t) * x * xc * dt
    return x, w
