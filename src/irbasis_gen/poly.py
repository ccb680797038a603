# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
import functools
import numpy as np

from . import _util
from . import _gauss
from . import nodes
from . import svd


class PiecewisePoly:
    """Piecewise polynomial in power form.

    Models a function on the interval ``[knots[0], knots[-1]]`` as a set of
    segments on the intervals ``S[i] = [knots[i], knots[i+1]]``, where on each
    interval the function is a polynomial in the distance to the left knot::

        p(x) == sum(data[d, i] * (x - knots[i])**d for d in range(polyorder))

    ``data`` may have additional trailing dimensions, in which case the object
    represents a vector (or tensor) of functions sharing the same knots, and
    ``symm`` holds the parity of each function under ``x -> -x`` (``+1`` for
    even, ``-1`` for odd, ``0`` for neither).

    Instances are immutable: the underlying arrays are marked read-only.
    """
    def __init__(self, data, knots, symm=None):
        data = np.array(data)
        knots = np.array(knots, float)
        if data.ndim < 2:
            raise ValueError("data must be at least two-dimensional")
        polyorder, nsegments = data.shape[:2]
        if knots.shape != (nsegments + 1,):
            raise ValueError("Invalid knots array")
        if not (knots[1:] > knots[:-1]).all():
            raise ValueError("Knots must be strictly increasing")
        if symm is None:
            symm = np.zeros(data.shape[2:], int)
        else:
            symm = np.array(symm, int)
            if symm.shape != data.shape[2:]:
                raise ValueError("shape mismatch")

        for arr in (data, knots, symm):
            arr.setflags(write=False)

        self.nsegments = nsegments
        self.polyorder = polyorder
        self.xmin = knots[0]
        self.xmax = knots[-1]
        self.knots = knots
        self.dx = np.diff(knots)
        self.data = data
        self.symm = symm

    def __getitem__(self, l):
        """Return part of a set of piecewise polynomials"""
        if isinstance(l, tuple):
            new_data = self.data[(slice(None), slice(None), *l)]
        else:
            new_data = self.data[:, :, l]
        return self.__class__(new_data, self.knots, self.symm[l])

    def __call__(self, x):
        """Evaluate polynomial at position x.

        Returns an array of shape ``(*self.shape, *x.shape)``.  Arguments in
        double precision yield double precision results, arguments of the
        extended dtype yield extended precision results.
        """
        i, xtilde = self._split(x)
        data = self.data[:, i].astype(xtilde.dtype)

        # x and data array must be broadcast'able against each other, so we
        # append dimensions for the function index here
        func_dims = self.ndim
        xtilde = xtilde.reshape(i.shape + (1,) * func_dims)
        res = _horner(data, xtilde)

        # Finally, exchange the x and vector dimensions
        order = tuple(range(i.ndim, i.ndim + func_dims)) + tuple(range(i.ndim))
        return res.transpose(*order)

    def overlap(self, f, n_gauss=None):
        r"""Evaluate overlap integral of this polynomial with function ``f``.

        Given the function ``f``, evaluate the integral::

            ∫ dx * f(x) * self(x)

        using composite Gauss-Legendre quadrature on the knots of ``self``.
        The result is exact up to rounding if ``f`` is a polynomial of degree
        below ``2 * n_gauss - polyorder + 1`` on each segment.

        Arguments:
            f (callable):
                function that is called with an array of points ``x`` and
                returns an array of shape ``(x.size, ...)``.
            n_gauss (int):
                number of Gauss points per segment, defaults to twice the
                polynomial order.

        Return:
            array of shape ``(*self.shape, *f_shape)``.
        """
        if n_gauss is None:
            n_gauss = 2 * self.polyorder
        rule = _gauss.legendre(n_gauss).piecewise(self.knots)
        fx = np.asarray(f(rule.x))
        if fx.shape[:1] != rule.x.shape:
            raise ValueError("f must return array with leading dimension "
                             "matching the number of points")
        return np.tensordot(self(rule.x) * rule.w, fx, axes=(-1, 0))

    @property
    def shape(self): return self.data.shape[2:]

    @property
    def size(self): return self.data[:1, :1].size

    @property
    def ndim(self): return self.data.ndim - 2

    def _split(self, x):
        """Split segment"""
        x = np.asarray(x)
        if not svd.is_extended(x.dtype):
            x = x.astype(float)
        xfloat = _util.check_range(x.astype(float), self.xmin, self.xmax)
        i = self.knots.searchsorted(xfloat, 'right').clip(None, self.nsegments)
        i -= 1
        xtilde = x - self.knots.astype(x.dtype)[i]
        return i, xtilde


def _horner(data, x):
    """Evaluate power series with coefficients ``data[d]`` at ``x``"""
    res = data[-1] * np.ones_like(x)
    for coeff in data[-2::-1]:
        res = res * x + coeff
    return res


@functools.lru_cache(maxsize=None)
def legendre_to_power(nl, dtype=float):
    """Return table converting Legendre to power series coefficients.

    Returns an ``(nl, nl)`` array ``T``, where ``T[l, d]`` is the coefficient
    of ``(t + 1)**d`` in the normalized Legendre polynomial of degree ``l``,
    ``sqrt(l + 1/2) * P[l](t)``, i.e., its ``d``-th derivative at ``t == -1``
    divided by ``d!``.  The table is computed in (and cached for) ``dtype``.
    """
    if nl <= 0:
        raise ValueError("number of Legendre polynomials must be positive")
    dtype = np.dtype(dtype)

    # The derivatives at t == -1 follow from differentiating the identity
    #     P[l+1]'(t) == P[l-1]'(t) + (2*l + 1) * P[l](t)
    # d - 1 times, together with P[l](-1) == (-1)**l.
    deriv = np.zeros((nl, nl), dtype)
    deriv[:, 0] = (-1.0) ** np.arange(nl)
    if nl > 1:
        deriv[1, 1] = 1.0
    for l in range(1, nl - 1):
        deriv[l+1, 1:] = deriv[l-1, 1:] + (2*l + 1) * deriv[l, :-1]

    l = np.arange(nl).astype(dtype)
    norm = np.sqrt((2 * l + 1) / 2)
    inv_fact = np.ones(nl, dtype)
    for d in range(1, nl):
        inv_fact[d] = inv_fact[d-1] / d

    table = norm[:, None] * deriv * inv_fact[None, :]
    table.setflags(write=False)
    return table


def from_legendre_modal(coeffs, edges, symm):
    """Construct functions on ``[-1, 1]`` from modal coefficients on ``[0, 1]``.

    Given a set of functions on the reduced interval ``[0, 1]`` expanded in
    normalized Legendre polynomials on each section::

        u(x) == sum(coeffs[l, s] * sqrt(2/h[s]) * Pn[l](t[s](x)))

    where ``h[s]`` is the width of section ``s`` between ``edges[s]`` and
    ``edges[s+1]`` and ``t[s]`` maps that section to ``[-1, 1]``, construct
    the functions ``u(|x|) * sign(x)**(symm == -1) / sqrt(2)`` on ``[-1, 1]``,
    which are normalized on the full interval.

    ``coeffs`` is an array of shape ``(nl, nsec, nfunc)`` and ``symm`` a vector
    of length ``nfunc`` with entries ``+1`` (even) or ``-1`` (odd).  The
    computation is carried out in the dtype of ``coeffs``.
    """
    coeffs = np.asarray(coeffs)
    nl, nsec, nfunc = coeffs.shape
    dtype = coeffs.dtype
    edges = np.asarray(edges, float)
    symm = np.asarray(symm, int)
    if edges.shape != (nsec + 1,):
        raise ValueError("number of sections does not match edges")
    if symm.shape != (nfunc,) or not (np.abs(symm) == 1).all():
        raise ValueError("parity must be +1 or -1 for each function")

    knots = nodes.mirror_edges(edges)
    if knots.size != 2 * nsec + 1:
        raise RuntimeError(f"mirrored domain has {knots.size - 1} sections, "
                           f"expected {2 * nsec}")

    # Map x -> -x maps the local Legendre coordinate t to -t, and we have
    # Pn[l](-t) == (-1)**l * Pn[l](t).
    sign = symm[None, :] * (-1.0) ** np.arange(nl)[:, None]
    coeffs_neg = coeffs * sign[:, None, :]

    # Power series coefficients in units of the local coordinate (t + 1),
    # then rescaled to (x - knot) = h/2 * (t + 1).  The factor sqrt(2/h)
    # times the 1/sqrt(2) of the full-domain normalization gives 1/sqrt(h).
    table = legendre_to_power(nl, dtype)
    hsec = np.diff(edges).astype(dtype)
    scale = np.empty((nl, nsec), dtype)
    scale[0] = 1 / np.sqrt(hsec)
    for d in range(1, nl):
        scale[d] = scale[d-1] * (2 / hsec)

    def to_power(c):
        p = (table.T @ c.reshape(nl, -1)).reshape(nl, nsec, nfunc)
        return p * scale[:, :, None]

    data = np.empty((nl, 2 * nsec, nfunc), dtype)
    data[:, nsec:] = to_power(coeffs)
    data[:, :nsec] = to_power(coeffs_neg)[:, ::-1]
    return PiecewisePoly(data, knots, symm)


def compute_tbar(poly, o):
    r"""Fourier integral of a piecewise polynomial on ``[-1, 1]``.

    For a vector of polynomials ``u[l]`` and a vector of integers ``o``,
    compute::

        Tbar[o, l] == 1/sqrt(2) * ∫ dx exp(1j * pi/2 * o * (x + 1)) * u[l](x)

    exactly up to rounding.  Returns an array of shape ``(o.size, l.size)``.
    """
    if poly.xmin != -1 or poly.xmax != 1:
        raise NotImplementedError("Only interval [-1, 1] supported")
    if poly.ndim != 1:
        raise ValueError("expecting vector of polynomials")
    o = _util.check_frequencies(o)

    # Only for functions with definite parity, we may restrict ourselves to
    # the positive half, where ∫[-1,0] exp(iwx) u(x) == symm * conj(∫[0,1]).
    symm = poly.symm
    positive_half = (symm != 0).all() and (
                            poly.knots == -poly.knots[::-1]).all()
    segs = poly.knots[:-1] >= 0 if positive_half else np.ones(
                            poly.nsegments, bool)
    res = _segment_integrals(poly, o, segs)
    if positive_half:
        res = np.where(symm == 1, 2 * res.real, 2j * res.imag)

    return res * (_imag_power(o) / np.sqrt(2))[:, None]


def _segment_integrals(poly, o, segs):
    """Return ``∫ exp(1j * pi/2 * o * x) * poly(x)`` over selected segments"""
    data = poly.data[:, segs].astype(float)
    a = poly.knots[:-1][segs]
    h = poly.dx[segs]
    polyorder, nsegs, nfunc = data.shape

    # On the segment [a, a+h], we have
    #   ∫ (x - a)**k * exp(1j*w*x) == exp(1j*w*a) * h**(k+1) * I[k](w*h)
    theta = np.pi/2 * o[:, None] * h[None, :]
    ik = _monomial_ft(polyorder, theta)
    hpow = h[None, :] ** np.arange(1, polyorder + 1)[:, None]
    phase = _phase(o, a)
    mat = ik * hpow[:, None, :] * phase[None, :, :]

    # Perform the following, but faster:
    #   result = einsum('kos,ksl->ol', mat, data)
    mat = mat.transpose(1, 2, 0).reshape(o.size, nsegs * polyorder)
    data = data.transpose(1, 0, 2).reshape(nsegs * polyorder, nfunc)
    return mat @ data


def _monomial_ft(kmax, theta):
    """Fourier integral of monomials on the unit interval.

    Returns an array ``I`` of shape ``(kmax, *theta.shape)`` with::

        I[k] == ∫[0,1] ds * s**k * exp(1j * theta * s)

    Integration by parts yields a recursion in ``k``, which is stable upwards
    for ``|theta| >= kmax``.  For small ``|theta|``, the recursion is instead
    run downwards, starting from a crude estimate at high order whose error
    is damped by ``|theta| / k`` in each step.
    """
    theta = np.asarray(theta, float)
    result = np.empty((kmax,) + theta.shape, complex)
    upward = np.abs(theta) >= kmax
    downward = ~upward

    ith = 1j * theta[upward]
    eith = np.exp(ith)
    curr = (eith - 1) / ith
    part = [curr]
    for k in range(1, kmax):
        curr = (eith - k * curr) / ith
        part.append(curr)
    result[:, upward] = np.array(part).reshape(kmax, -1)

    ith = 1j * theta[downward]
    eith = np.exp(ith)
    kstart = 2 * kmax + 40
    curr = eith / (kstart + 1)
    part = []
    for k in range(kstart, 0, -1):
        curr = (eith - ith * curr) / k
        if k <= kmax:
            part.append(curr)
    result[:, downward] = np.array(part[::-1]).reshape(kmax, -1)
    return result


def _phase(o, a):
    """Phase factor ``exp(1j * pi/2 * o * a)`` for integer ``o``.

    A naive implementation loses precision for large ``o``, where the
    product wraps around the unit circle many times and the mapping back to
    ``[-pi, pi)`` cuts digits from ``a``.  We thus split off the nearest
    integer ``a == shift + diff`` and use exact powers of the imaginary unit
    for the integer part.
    """
    shift = np.round(a).astype(int)
    diff = a - shift
    corr = _imag_power(o[:, None] * shift[None, :])
    return corr * np.exp(0.5j * np.pi * o[:, None] * diff[None, :])


def _imag_power(n):
    """Imaginary unit raised to an integer power without numerical error"""
    n = np.asarray(n)
    if not np.issubdtype(n.dtype, np.integer):
        raise ValueError("expecting set of integers here")
    cycle = np.array([1, 0+1j, -1, 0-1j], complex)
    return cycle[n % 4]
