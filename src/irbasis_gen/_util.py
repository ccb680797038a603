# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
import numpy as np


class RangeError(IndexError):
    """Basis function index outside of ``[0, dim)``"""


class DomainError(ValueError):
    """Argument of a basis function or kernel outside of its interval"""


class ConfigurationError(ValueError):
    """Invalid set of parameters for constructing a basis"""


class NumericalInstabilityError(RuntimeError):
    """Basis construction lost too much precision to be trusted.

    Raised when the merged singular values are not in non-increasing order.
    The attributes ``sector`` (``'even'`` or ``'odd'``) and ``index`` (the
    index of the offending singular value within its sector) allow the caller
    to retry with more working precision or a smaller basis.
    """
    def __init__(self, message, sector=None, index=None):
        super().__init__(message)
        self.sector = sector
        self.index = index


class NodeConvergenceWarning(UserWarning):
    """Root refinement for the section edges did not converge"""


def check_range(x, xmin, xmax):
    """Checks each element is in range [xmin, xmax]"""
    x = np.asarray(x)
    if not (x >= xmin).all():
        raise DomainError(f"Some x violate lower bound {xmin}")
    if not (x <= xmax).all():
        raise DomainError(f"Some x violate upper bound {xmax}")
    return x


def is_positive_int(value):
    """Returns true if ``value`` is a positive integral number"""
    try:
        return int(value) == value and value > 0
    except (TypeError, ValueError):
        return False


def check_index(l, size):
    """Checks that ``l`` is a valid basis function index"""
    if int(l) != l:
        raise RangeError(f"basis index must be integer, got {l}")
    l = int(l)
    if not 0 <= l < size:
        raise RangeError(f"basis index {l} out of range [0, {size})")
    return l


def check_frequencies(n, nonneg_sorted=False):
    """Checks that ``n`` is a vector of integer frequency indices"""
    n = np.asarray(n)
    if n.ndim != 1:
        raise ValueError("frequency indices must be a vector")
    if not np.issubdtype(n.dtype, np.integer):
        nfloat = n
        n = nfloat.astype(np.int64)
        if not (n == nfloat).all():
            raise ValueError("frequency index n must be integer")
    if nonneg_sorted:
        if not (n >= 0).all():
            raise ValueError("frequency indices must be non-negative")
        if not (n[1:] > n[:-1]).all():
            raise ValueError("frequency indices must be in ascending order")
    return n.astype(np.int64)


def check_svd_result(svd_result, matrix_shape=None):
    """Checks that argument is a valid SVD triple (u, s, v)"""
    u, s, v = map(np.asarray, svd_result)
    m_u, k_u = u.shape
    k_s, = s.shape
    n_v, k_v = v.shape
    if k_u != k_s or k_s != k_v:
        raise ValueError("shape mismatch between SVD elements:"
                         f"({m_u}, {k_u}) x ({k_s}) x ({n_v}, {k_v})")
    if matrix_shape is not None:
        m, n = matrix_shape
        if m_u != m or n_v != n:
            raise ValueError(f"shape mismatch between SVD ({m_u}, {n_v}) "
                             f"and matrix ({m}, {n})")
    return u, s, v
