# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
from . import _util
from . import kernel as _kernel
from . import poly
from . import sve


class IRBasis:
    """Intermediate representation (IR) basis in dimensionless variables.

    For the analytic continuation kernel ``K(x, y)`` with ``x = 2*τ/β - 1``
    and ``y = β*ω/Λ``, this class stores the truncated singular value
    expansion::

        K(x, y) ≈ sum(u[l](x) * s[l] * v[l](y) for l in range(dim()))

    where the ``u[l]`` and ``v[l]`` are orthonormal on ``[-1, 1]`` and
    alternate between even and odd functions, starting with an even one.
    The sign of each pair is fixed by ``u[l](1) >= 0``.

    Example:
        Compute the fermionic basis for Λ = 100 and evaluate the first few
        functions at imaginary time ``x == 0.5`` and Matsubara frequencies::

            import irbasis_gen
            basis = irbasis_gen.basis_f(100.0, max_dim=50)
            ux = basis.u(0.5)
            unl = basis.compute_tnl([0, 1, 2, 3])

    Instances are immutable and may be shared between threads.
    """
    def __init__(self, statistics, lambda_, max_dim, cutoff=1e-12, *,
                 n_legendre=10, n_gauss=12, precision_bits=None,
                 sve_result=None):
        self._kernel = _kernel.get_kernel(statistics, lambda_)
        if not _util.is_positive_int(max_dim):
            raise _util.ConfigurationError("maximum basis size must be positive")
        if sve_result is None:
            sve_result = sve.compute(self._kernel, max_dim, cutoff,
                                     n_legendre=n_legendre, n_gauss=n_gauss,
                                     precision_bits=precision_bits)
        elif sve_result.kernel.statistics != statistics or \
                sve_result.kernel.lambda_ != self._kernel.lambda_:
            raise _util.ConfigurationError("SVE result does not match kernel")

        u, s, v = sve_result
        if s.size > max_dim:
            u = u[:max_dim]
            s = s[:max_dim]
            v = v[:max_dim]

        self._sve_result = sve_result
        self._statistics = statistics
        self._u = u
        self._v = v
        self._s = s.astype(float)
        self._s.setflags(write=False)

    def __repr__(self):
        return (f"IRBasis(statistics={self._statistics!r}, "
                f"lambda_={self.lambda_!r}, dim={self.dim()})")

    def dim(self):
        """Number of basis functions / singular values"""
        return self._s.size

    @property
    def statistics(self):
        """Quantum statistic (`"F"` for fermionic, `"B"` for bosonic)"""
        return self._statistics

    @property
    def lambda_(self):
        """Basis cutoff parameter Λ"""
        return self._kernel.lambda_

    @property
    def kernel(self):
        """Kernel of which this is the singular value expansion"""
        return self._kernel

    @property
    def sve_result(self):
        return self._sve_result

    @property
    def s(self):
        """Vector of singular values of the continuation kernel"""
        return self._s

    @property
    def u(self):
        """Basis functions on the reduced imaginary time axis.

        Set of IR basis functions on the reduced imaginary time (`x`) axis,
        where `x` is a real number in the interval `[-1, 1]`.  Calling ``u(x)``
        returns an array of shape ``(dim(), *x.shape)``.
        """
        return self._u

    @property
    def v(self):
        """Basis functions on the reduced real frequency (`y`) axis"""
        return self._v

    def sl(self, l):
        """Return the singular value of index ``l``"""
        return self._s[_util.check_index(l, self.dim())]

    def ul(self, l):
        """Return the ``l``-th basis function on the `x` axis"""
        return self._u[_util.check_index(l, self.dim())]

    def vl(self, l):
        """Return the ``l``-th basis function on the `y` axis"""
        return self._v[_util.check_index(l, self.dim())]

    def ulx(self, l, x):
        """Evaluate ``u[l](x)`` for scalar or array ``x`` in ``[-1, 1]``.

        The result has the dtype of ``x`` if it is of the extended precision
        type, and is in double precision otherwise.
        """
        return self.ul(l)(x)

    def vly(self, l, y):
        """Evaluate ``v[l](y)`` for scalar or array ``y`` in ``[-1, 1]``"""
        return self.vl(l)(y)

    def compute_tnl(self, n):
        r"""Transform of the basis functions to Matsubara frequencies.

        For a vector of non-negative, ascending indices ``n``, compute::

            T[n, l] == 1/sqrt(2) * ∫ dx exp(1j * pi * (2*n + zeta) * (x + 1) / 2)
                                      * u[l](x)

        where ``zeta`` is 1 for fermions and 0 for bosons.  The Matsubara
        Green's function then follows as ``G(iw[n]) == sqrt(β) * T @ g``,
        where ``g`` are the expansion coefficients of ``G(τ)``.

        Returns an array of shape ``(n.size, dim())``.
        """
        n = _util.check_frequencies(n, nonneg_sorted=True)
        zeta = 1 if self._statistics == 'F' else 0
        return poly.compute_tbar(self._u, 2 * n + zeta)

    def compute_tbar_ol(self, o):
        r"""Transform of the basis functions to shifted frequencies.

        For a vector of integers ``o``, compute::

            Tbar[o, l] == 1/sqrt(2) * ∫ dx exp(1j * pi * o * (x + 1) / 2)
                                         * u[l](x)

        which reduces to ``compute_tnl`` for ``o == 2*n + zeta``.  Returns an
        array of shape ``(o.size, dim())``.
        """
        return poly.compute_tbar(self._u, o)


def basis_f(lambda_, max_dim, cutoff=1e-12, **kwargs):
    """Construct fermionic IR basis"""
    return IRBasis('F', lambda_, max_dim, cutoff, **kwargs)


def basis_b(lambda_, max_dim, cutoff=1e-12, **kwargs):
    """Construct bosonic IR basis"""
    return IRBasis('B', lambda_, max_dim, cutoff, **kwargs)
