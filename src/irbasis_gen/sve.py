# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
from warnings import warn
import numpy as np

from . import _gauss
from . import _util
from . import nodes
from . import poly
from . import svd

HAVE_XPREC = svd._ddouble is not None


def compute(K, max_dim, cutoff=1e-12, *, n_legendre=10, n_gauss=12,
            precision_bits=None, edges=None):
    """Perform truncated singular value expansion of a kernel.

    Perform a truncated singular value expansion (SVE) of a centrosymmetric
    integral kernel ``K : [-1, 1] x [-1, 1] -> R``:

        K(x, y) == sum(s[l] * u[l](x) * v[l](y) for l in (0, 1, 2, ...)),

    where ``s[l]`` are the singular values, which are ordered in non-increasing
    fashion, ``u[l](x)`` are the left singular functions, which form an
    orthonormal system on ``[-1, 1]``, and ``v[l](y)`` are the right singular
    functions, which form an orthonormal system on ``[-1, 1]``.

    The SVE is mapped onto the singular value decompositions (SVD) of two
    matrices, one for the even and one for the odd singular functions, by
    a Galerkin projection onto piecewise Legendre polynomials.

    Arguments:

      - ``K``: Integral kernel to take SVE from
      - ``max_dim``: Maximum basis size.
      - ``cutoff``: Relative cutoff for the singular values: only ``s[l]``
        with ``s[l] >= cutoff * s[0]`` are retained.
      - ``n_legendre``: Number of Legendre polynomials per section.
      - ``n_gauss``: Number of Gauss-Legendre points per section.
      - ``precision_bits``: Working precision in bits of mantissa.  Defaults
        to ``svd.min_precision_bits(cutoff)``.
      - ``edges``: Pair ``(edges_x, edges_y)`` of section edges on ``[0, 1]``.
        Defaults to the estimate from ``nodes.estimate_section_edges``.

    Return an ``SVEResult``, which unpacks as ``u, s, v``.
    """
    if not K.is_centrosymmetric:
        raise _util.ConfigurationError("kernel must be centrosymmetric")
    dtype = _check_parameters(max_dim, cutoff, n_legendre, n_gauss,
                              precision_bits)
    if edges is None:
        edges_x, edges_y = nodes.estimate_section_edges(K)
    else:
        edges_x, edges_y = map(_check_edges, edges)

    # Even and odd functions are singular functions of the symmetrized
    # kernels on [0, 1] x [0, 1], so the SVE is block-diagonal.
    sectors = [LegendreProjection(K.get_symmetrized(sign), edges_x, edges_y,
                                  n_legendre, n_gauss, dtype)
               for sign in (+1, -1)]
    u, s, v = zip(*(svd.compute(sector.matrix, 'accurate')
                    for sector in sectors))

    which, index = merge_sectors(s[0], s[1], cutoff, max_dim)

    # Gather modal coefficients in the order of the merged basis
    u_modal = [sector.modal(ui) for (sector, ui) in zip(sectors, u)]
    v_modal = [sector.modal(vi) for (sector, vi) in zip(sectors, v)]
    offset = np.where(which == 0, 0, s[0].size)
    order = offset + index
    u_modal = np.concatenate(u_modal, axis=2)[:, :, order]
    v_modal = np.concatenate(v_modal, axis=2)[:, :, order]
    s_merged = np.concatenate(s)[order]
    symm = np.where(which == 0, 1, -1)

    u_full = poly.from_legendre_modal(u_modal, edges_x, symm)
    v_full = poly.from_legendre_modal(v_modal, edges_y, symm)
    u_full, v_full = _canonicalize(u_full, v_full)
    return SVEResult(u_full, s_merged, v_full, K, cutoff, edges_x, edges_y,
                     dtype)


class SVEResult:
    """Result of the singular value expansion.

    Holds the left singular functions ``u``, the singular values ``s`` (in
    working precision) and the right singular functions ``v``, together with
    the parameters used to compute them.  Unpacks as ``u, s, v``.
    """
    def __init__(self, u, s, v, kernel, cutoff, edges_x, edges_y, dtype):
        s = np.array(s)
        s.setflags(write=False)
        self.u = u
        self.s = s
        self.v = v
        self.kernel = kernel
        self.cutoff = cutoff
        self.edges_x = edges_x
        self.edges_y = edges_y
        self.dtype = np.dtype(dtype)

    def __iter__(self):
        return iter((self.u, self.s, self.v))

    def __repr__(self):
        return (f"SVEResult(kernel={self.kernel!r}, size={self.s.size}, "
                f"dtype={self.dtype})")


class LegendreProjection:
    """Galerkin projection of a reduced kernel onto piecewise Legendre basis.

    The kernel ``K`` on ``[0, 1] x [0, 1]`` is projected onto the basis
    functions::

        psi[s, l](x) == sqrt(2/h[s]) * Pn[l](2 * (x - edges[s]) / h[s] - 1)

    supported on section ``s`` of width ``h[s]``, where ``Pn[l]`` is the
    normalized Legendre polynomial of degree ``l``.  These functions are
    orthonormal on ``[0, 1]``, so the singular values of the matrix::

        A[(s,l), (t,m)] == ∫∫ dx dy psi[s,l](x) K(x, y) psi[t,m](y)

    approximate those of the kernel, while the singular vectors are the
    expansion coefficients of the singular functions.  The integrals are
    evaluated by composite Gauss-Legendre quadrature, which yields::

        A == phi_x @ K(x[i], y[j]) @ phi_y.T

    where ``phi`` are block-diagonal projectors, one ``(nl, n_gauss)`` block
    per section.
    """
    def __init__(self, K, edges_x, edges_y, n_legendre, n_gauss, dtype):
        self.K = K
        self.n_legendre = n_legendre
        self.n_gauss = n_gauss
        self.dtype = np.dtype(dtype)
        self.edges_x = np.asarray(edges_x, float)
        self.edges_y = np.asarray(edges_y, float)

        rule = _gauss.legendre(n_gauss, self.dtype)
        self._gauss_x, self._phi_x = self._projector(rule, self.edges_x)
        self._gauss_y, self._phi_y = self._projector(rule, self.edges_y)

    @property
    def nsec_x(self): return self.edges_x.size - 1

    @property
    def nsec_y(self): return self.edges_y.size - 1

    @property
    def matrix(self):
        """Projected kernel of shape ``(nsec_x * nl, nsec_y * nl)``"""
        kmat = self.K(self._gauss_x.x[:, None], self._gauss_y.x[None, :])
        return self._phi_x @ kmat @ self._phi_y.T

    def modal(self, vecs):
        """Reshape singular vectors to modal coefficients ``[l, sec, k]``"""
        vecs = np.asarray(vecs)
        nsec = vecs.shape[0] // self.n_legendre
        if nsec * self.n_legendre != vecs.shape[0]:
            raise ValueError("invalid size of singular vectors")
        return vecs.reshape(nsec, self.n_legendre, -1).transpose(1, 0, 2)

    def _projector(self, rule, edges):
        nl = self.n_legendre
        nsec = edges.size - 1
        edges = edges.astype(self.dtype)
        gauss = rule.piecewise(edges)

        # On each section, the Gauss weights scale with h/2, so that
        #   sqrt(2/h) * Pn[l](t[n]) * w[n] * h/2 == sqrt(h/2) * Pn[l] * w[n]
        pl_w = _gauss.legendre_normalized(nl, rule.x) * rule.w[None, :]
        sqrt_half_h = np.sqrt((edges[1:] - edges[:-1]) / 2)
        phi = np.zeros((nsec * nl, nsec * self.n_gauss), self.dtype)
        for sec in range(nsec):
            phi[sec*nl:(sec+1)*nl, sec*self.n_gauss:(sec+1)*self.n_gauss] = \
                sqrt_half_h[sec] * pl_w
        return gauss, phi


def merge_sectors(s_even, s_odd, cutoff, max_dim):
    """Merge singular values of even and odd sector into basis order.

    The even and odd singular values interlace, so the ``i``-th even value
    becomes basis function ``2*i`` and the ``i``-th odd value basis function
    ``2*i + 1``.  Values are taken in lock-step until ``max_dim`` values are
    selected, until a value drops below ``cutoff`` relative to the largest
    even singular value, or until either sector is exhausted.

    Returns a pair ``(which, index)`` of integer arrays, where ``which[l]`` is
    0 (even) or 1 (odd), and ``index[l]`` is the index of basis function ``l``
    within its sector.  Raises ``NumericalInstabilityError`` if the merged
    sequence is not non-increasing.
    """
    s_even = np.asarray(s_even)
    s_odd = np.asarray(s_odd)
    if not s_even.size:
        raise ValueError("no singular values in even sector")
    threshold = cutoff * s_even[0]

    which = []
    index = []
    sectors = (s_even, s_odd)
    for i in range(max(s_even.size, s_odd.size)):
        for sector in (0, 1):
            s_sector = sectors[sector]
            if (len(which) >= max_dim or i >= s_sector.size
                    or not (s_sector[i] >= threshold)):
                return _check_merged(sectors, which, index)
            which.append(sector)
            index.append(i)
    return _check_merged(sectors, which, index)


def _check_merged(sectors, which, index):
    which = np.array(which, int)
    index = np.array(index, int)
    s_even, s_odd = sectors
    s = np.concatenate([s_even, s_odd])[np.where(which, s_even.size, 0) + index]
    violations = (s[1:] > s[:-1]).nonzero()[0]
    if violations.size:
        l = violations[0] + 1
        sector = 'odd' if which[l] else 'even'
        s_float = s.astype(float)
        raise _util.NumericalInstabilityError(
            f"singular value {l} ({sector} sector, index {index[l]}) exceeds "
            f"its predecessor: {s_float[l]:.6g} > {s_float[l-1]:.6g}.  "
            f"Increase the working precision or reduce the basis size.",
            sector, int(index[l]))
    return which, index


def _canonicalize(u, v):
    """Canonicalize basis.

    Each SVD (u_l, v_l) pair is unique only up to a global sign, which may
    differ from implementation to implementation and also platform.  We
    fix that gauge by demanding u_l(1) >= 0.  This ensures a diffeomorphic
    connection to the Legendre polynomials for lambda_ -> 0.
    """
    gauge = np.sign(u(1.0))
    gauge[gauge == 0] = 1
    u = poly.PiecewisePoly(u.data * gauge, u.knots, u.symm)
    v = poly.PiecewisePoly(v.data * gauge, v.knots, v.symm)
    return u, v


def _check_parameters(max_dim, cutoff, n_legendre, n_gauss, precision_bits):
    """Validate construction parameters and return working dtype"""
    if not _util.is_positive_int(max_dim):
        raise _util.ConfigurationError("maximum basis size must be positive")
    if not (0 < cutoff < 1):
        raise _util.ConfigurationError("cutoff must be between 0 and 1")
    if not _util.is_positive_int(n_legendre):
        raise _util.ConfigurationError(
                    "number of Legendre polynomials must be positive")
    if not _util.is_positive_int(n_gauss):
        raise _util.ConfigurationError(
                    "number of Gauss points must be positive")
    if n_gauss < n_legendre:
        warn(f"Using {n_gauss} Gauss points for {n_legendre} Legendre "
             f"polynomials per section.  Expect inaccurate projections.",
             UserWarning, 3)

    min_bits = svd.min_precision_bits(cutoff)
    if precision_bits is None:
        if min_bits <= svd.MAX_BITS:
            return svd.working_dtype(min_bits)
        msg = (f"\nBasis cutoff is {cutoff:.2g}, which requires {min_bits} "
               f"bits of\nworking precision, but only {svd.MAX_BITS} bits "
               f"are available.  Expect\nsingular values and basis "
               f"functions for large l to have lower\nprecision than the "
               f"cutoff.\n")
        if not HAVE_XPREC:
            msg += "You can install the xprec package to gain more precision.\n"
        warn(msg, UserWarning, 3)
        return svd.working_dtype(svd.MAX_BITS)
    elif precision_bits < min_bits:
        warn(f"Working precision of {precision_bits} bits is below the "
             f"{min_bits} bits recommended for cutoff {cutoff:.2g}.",
             UserWarning, 3)
    return svd.working_dtype(precision_bits)


def _check_edges(edges):
    edges = np.asarray(edges, float)
    if edges.ndim != 1 or edges.size < 2:
        raise _util.ConfigurationError("edges must be a vector")
    if edges[0] != 0 or edges[-1] != 1:
        raise _util.ConfigurationError("edges must span [0, 1]")
    if not (edges[1:] > edges[:-1]).all():
        raise _util.ConfigurationError("edges must be strictly increasing")
    return edges
