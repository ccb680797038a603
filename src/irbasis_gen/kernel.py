# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
import numpy as np

from ._util import ConfigurationError, DomainError

# Beyond |lambda * y| > LARGE_V, 1 + exp(-|lambda * y|) == 1 to any working
# precision we support, so the exponentials are folded into the numerator.
LARGE_V = 200.0

# Below |lambda * y| < TINY_V, the bosonic kernel is replaced by its limit.
TINY_V = 1e-30


class KernelBase:
    """Integral kernel ``K(x, y)``.

    Abstract base class for an integral kernel, i.e., a real binary function
    ``K(x, y)`` used in a Fredholm integral equation of the first kind:

                        u(x) = ∫ K(x, y) v(y) dy

    where ``x ∈ [xmin, xmax]`` and ``y ∈ [ymin, ymax]``.  For its SVE to exist,
    the kernel must be square-integrable, for its singular values to decay
    exponentially, it must be smooth.

    Kernels are evaluated in the precision of their arguments: passing
    arrays of ``xprec.ddouble`` yields results in double-double precision.
    """
    def __call__(self, x, y):
        """Evaluate kernel at point (x, y)

        For given ``x, y``, return the value of ``K(x, y)``. The arguments may
        be numpy arrays, in which case the function shall be evaluated over
        the broadcast arrays.
        """
        raise NotImplementedError()

    @property
    def xrange(self):
        """Tuple ``(xmin, xmax)`` delimiting the range of allowed x values"""
        return -1, 1

    @property
    def yrange(self):
        """Tuple ``(ymin, ymax)`` delimiting the range of allowed y values"""
        return -1, 1

    @property
    def is_centrosymmetric(self):
        """Kernel is centrosymmetric.

        Returns true if and only if ``K(x, y) == K(-x, -y)`` for all values of
        ``x`` and ``y``.  This allows the kernel to be block-diagonalized,
        speeding up the singular value expansion by a factor of 4.  Defaults
        to false.
        """
        return False

    def get_symmetrized(self, sign):
        """Return symmetrized kernel ``K(x, y) + sign * K(x, -y)``.

        By default, this returns a simple wrapper over the current instance
        which naively performs the sum.  You may want to override if this
        to avoid cancellation.
        """
        return ReducedKernel(self, sign)


class FermionicKernel(KernelBase):
    """Fermionic analytical continuation kernel.

    In dimensionless variables ``x = 2*τ/β - 1``, ``y = β*ω/Λ``, the fermionic
    integral kernel is a function on ``[-1, 1] x [-1, 1]``::

        K(x, y) == exp(-Λ/2 * x * y) / (2 * cosh(Λ/2 * y))
    """
    statistics = 'F'

    def __init__(self, lambda_):
        if not (lambda_ > 0):
            raise ConfigurationError("kernel cutoff lambda must be positive")
        self._lambda = float(lambda_)

    @property
    def lambda_(self): return self._lambda

    def __call__(self, x, y):
        x, y = _check_domain(self, x, y)
        x, y = np.broadcast_arrays(x, y)
        half_v = .5 * self._lambda * y
        half_vx = half_v * x

        # For large |v|, cosh(v/2) overflows, but then we know that
        # 1/(2 cosh(v/2)) == exp(-|v|/2) to working precision.
        large = np.abs(half_v) > LARGE_V / 2
        result = np.empty_like(half_vx)
        result[large] = np.exp(-half_vx[large] - np.abs(half_v[large]))
        mid = ~large
        result[mid] = np.exp(-half_vx[mid]) / (2 * np.cosh(half_v[mid]))
        return result

    @property
    def is_centrosymmetric(self):
        return True

    def get_symmetrized(self, sign):
        if sign == -1:
            return _FermionicKernelOdd(self, sign)
        return super().get_symmetrized(sign)

    def __repr__(self):
        return f"FermionicKernel({self._lambda!r})"


class BosonicKernel(KernelBase):
    """Bosonic analytical continuation kernel.

    In dimensionless variables ``x = 2*τ/β - 1``, ``y = β*ω/Λ``, the bosonic
    integral kernel is a function on ``[-1, 1] x [-1, 1]``::

        K(x, y) == y * exp(-Λ/2 * x * y) / (2 * sinh(Λ/2 * y))

    Care has to be taken in evaluating this expression around ``y == 0``,
    where it approaches ``1/Λ``.
    """
    statistics = 'B'

    def __init__(self, lambda_):
        if not (lambda_ > 0):
            raise ConfigurationError("kernel cutoff lambda must be positive")
        self._lambda = float(lambda_)

    @property
    def lambda_(self): return self._lambda

    def __call__(self, x, y):
        x, y = _check_domain(self, x, y)
        x, y = np.broadcast_arrays(x, y)
        v = self._lambda * y
        half_v = .5 * v
        half_vx = half_v * x
        abs_v = np.abs(v)

        # The expression ``y / sinh(v/2)`` has a removable singularity at
        # v == 0, and sinh overflows for large |v|, where we can again use
        # the fact that y/(2 sinh(v/2)) == |y| exp(-|v|/2).
        tiny = abs_v < TINY_V
        large = abs_v > LARGE_V
        mid = ~(tiny | large)

        result = np.empty_like(half_vx)
        result[tiny] = np.exp(-half_vx[tiny]) / self._lambda
        result[large] = np.abs(y[large]) * np.exp(
                            -half_vx[large] - np.abs(half_v[large]))
        result[mid] = y[mid] * np.exp(-half_vx[mid]) / (2 * np.sinh(half_v[mid]))
        return result

    @property
    def is_centrosymmetric(self):
        return True

    def get_symmetrized(self, sign):
        if sign == -1:
            return _BosonicKernelOdd(self, sign)
        return super().get_symmetrized(sign)

    def __repr__(self):
        return f"BosonicKernel({self._lambda!r})"


class ReducedKernel(KernelBase):
    """Restriction of centrosymmetric kernel to positive interval.

    For a kernel ``K`` on ``[-1, 1] x [-1, 1]`` that is centrosymmetric, i.e.,
    ``K(x, y) == K(-x, -y)``, it is straight-forward to show that the left/right
    singular vectors can be chosen as either odd or even functions.

    Consequentially, they are singular functions of a reduced kernel ``K_red``
    on ``[0, 1] x [0, 1]`` that is given as either::

        K_red(x, y) == K(x, y) + sign * K(x, -y)

    This kernel is what this class represents.  The full singular functions can
    be reconstructed by (anti-)symmetrically continuing them to the negative
    axis.
    """
    def __init__(self, inner, sign=1):
        if not inner.is_centrosymmetric:
            raise ValueError("inner kernel must be centrosymmetric")
        if np.abs(sign) != 1:
            raise ValueError("sign must square to one")

        self.inner = inner
        self.sign = sign

    def __call__(self, x, y):
        x, y = _check_domain(self, x, y)
        K_plus = self.inner(x, y)
        K_minus = self.inner(x, -y)
        return K_plus + K_minus if self.sign == 1 else K_plus - K_minus

    @property
    def xrange(self):
        _, xmax = self.inner.xrange
        return 0, xmax

    @property
    def yrange(self):
        _, ymax = self.inner.yrange
        return 0, ymax

    @property
    def is_centrosymmetric(self):
        return False

    def get_symmetrized(self, sign):
        raise RuntimeError("cannot symmetrize twice")

    @property
    def lambda_(self): return self.inner.lambda_

    @property
    def statistics(self): return self.inner.statistics


class _FermionicKernelOdd(ReducedKernel):
    """Fermionic analytical continuation kernel, odd.

    In dimensionless variables ``x = 2*τ/β - 1``, ``y = β*ω/Λ``, the fermionic
    integral kernel is a function on ``[0, 1] x [0, 1]``::

        K(x, y) == -sinh(Λ/2 * x * y) / cosh(Λ/2 * y)
    """
    def __call__(self, x, y):
        result = super().__call__(x, y)
        x, y = np.broadcast_arrays(x, y)

        # For x * y around 0, antisymmetrization introduces cancellation, which
        # reduces the relative precision.  To combat this, we replace the
        # values with the explicit form
        v_half = self.inner.lambda_/2 * y
        xv_half = x * v_half
        explicit = xv_half < 1
        large = explicit & (v_half > LARGE_V / 2)
        mid = explicit & ~large
        result[mid] = -np.sinh(xv_half[mid]) / np.cosh(v_half[mid])
        result[large] = -2 * np.sinh(xv_half[large]) * np.exp(-v_half[large])
        return result


class _BosonicKernelOdd(ReducedKernel):
    """Bosonic analytical continuation kernel, odd.

    In dimensionless variables ``x = 2*τ/β - 1``, ``y = β*ω/Λ``, the bosonic
    integral kernel is a function on ``[0, 1] x [0, 1]``::

            K(x, y) = -y * sinh(Λ/2 * x * y) / sinh(Λ/2 * y)
    """
    def __call__(self, x, y):
        result = super().__call__(x, y)
        x, y = np.broadcast_arrays(x, y)

        # For x * y around 0, antisymmetrization introduces cancellation, which
        # reduces the relative precision.  To combat this, we replace the
        # values with the explicit form
        v_half = self.inner.lambda_/2 * y
        xv_half = x * v_half
        explicit = xv_half < 1
        tiny = explicit & (v_half < TINY_V / 2)
        large = explicit & (v_half > LARGE_V / 2)
        mid = explicit & ~(tiny | large)
        result[tiny] = -x[tiny] * y[tiny]
        result[mid] = (-y[mid] * np.sinh(xv_half[mid])
                       / np.sinh(v_half[mid]))
        result[large] = (-2 * y[large] * np.sinh(xv_half[large])
                         * np.exp(-v_half[large]))
        return result


def get_kernel(statistics, lambda_):
    """Return the analytic continuation kernel for given statistics"""
    if statistics == 'F':
        return FermionicKernel(lambda_)
    elif statistics == 'B':
        return BosonicKernel(lambda_)
    raise ConfigurationError("statistics must either be 'B' (for bosonic "
                             "basis) or 'F' (for fermionic basis)")


def _check_domain(kernel, x, y):
    """Check that arguments lie within the correct domain"""
    x = np.asarray(x)
    xmin, xmax = kernel.xrange
    if not (x >= xmin).all() or not (x <= xmax).all():
        raise DomainError("x values not in range [{:g},{:g}]".format(xmin, xmax))

    y = np.asarray(y)
    ymin, ymax = kernel.yrange
    if not (y >= ymin).all() or not (y <= ymax).all():
        raise DomainError("y values not in range [{:g},{:g}]".format(ymin, ymax))
    return x, y
