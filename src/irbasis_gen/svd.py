# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
"""
Dense singular value decomposition in double or double-double precision.

The working precision of the basis construction is given in bits of mantissa
and mapped onto the narrowest numpy dtype providing it.  There is no global
precision state: the resulting dtype is passed explicitly through all stages
of the construction.
"""
from warnings import warn
import numpy as np

from . import _util

try:
    from xprec import ddouble as _ddouble
    import xprec.linalg as _xprec_linalg

    MAX_DTYPE = _ddouble
    MAX_EPS = 5e-32
    MAX_BITS = 104
except ImportError:
    _ddouble = None
    _xprec_linalg = None

    MAX_DTYPE = np.double
    MAX_EPS = np.finfo(MAX_DTYPE).eps
    MAX_BITS = 53

try:
    from scipy.linalg.lapack import dgejsv as _lapack_dgejsv
except ImportError:
    _lapack_dgejsv = None

DOUBLE_BITS = 53


def min_precision_bits(cutoff):
    """Minimum number of mantissa bits for given singular value cutoff.

    The singular values and vectors are computed to an absolute accuracy
    of about ``eps * s[0]``, where ``eps`` is the working precision, and
    the basis functions must be accurate well beyond the cutoff.
    """
    return max(100, int(3.34 * (np.log10(1 / cutoff) + 15)))


def working_dtype(bits):
    """Return numpy dtype providing at least ``bits`` bits of mantissa"""
    if not (bits > 0):
        raise _util.ConfigurationError("precision must be a positive number "
                                       "of bits")
    if bits <= DOUBLE_BITS:
        return np.dtype(np.double)
    if bits <= MAX_BITS:
        return np.dtype(MAX_DTYPE)

    msg = (f"requested working precision of {bits} bits exceeds the "
           f"{MAX_BITS} bits available")
    if _ddouble is None:
        msg += ".  Install the xprec package to gain more precision"
    raise _util.ConfigurationError(msg)


def is_extended(dtype):
    """Return true if dtype is the extended (double-double) type"""
    return _ddouble is not None and np.dtype(dtype) == _ddouble


def compute(a_matrix, strategy='default'):
    """Compute thin singular value decomposition

    Computes the thin singular value decomposition of a matrix `A`
    into `U`, `s`, `V`:

        A == (U * s) @ V.T

    in the precision of `A`, where the singular values `s` are ordered in
    non-increasing fashion.  For double precision matrices, the `strategy`
    parameter can be `default` (full SVD) or `accurate` (Jacobi rotation SVD).
    Double-double matrices are always decomposed by the xprec package.
    """
    a_matrix = np.asarray(a_matrix)
    if a_matrix.ndim != 2:
        raise ValueError("expecting a matrix")

    if is_extended(a_matrix.dtype):
        u, s, v = _ddouble_svd_trunc(a_matrix)
    elif strategy == 'default':
        # Usual (simple) SVD
        u, s, vh = np.linalg.svd(a_matrix, full_matrices=False)
        v = vh.T.conj()
    elif strategy == 'accurate':
        # Most accurate SVD
        if _lapack_dgejsv is None:
            warn("dgejsv (accurate SVD) is not available. Falling back to\n"
                 "default SVD.  Expect slightly lower precision.\n"
                 "Use xprec or scipy >= 1.5 to fix the issue.")
            return compute(a_matrix, strategy='default')
        u, s, v = _dgejsv(a_matrix, mode='F')
    else:
        raise ValueError("invalid strategy:" + str(strategy))

    u, s, v = _util.check_svd_result((u, s, v), a_matrix.shape)
    return _sort_descending(u, s, v)


def _sort_descending(u, s, v):
    # The stable sort leaves an already ordered sequence untouched, even if
    # neighbouring values are indistinguishable in double precision.
    order = np.argsort(-s.astype(float), kind='stable')
    if (order == np.arange(s.size)).all():
        return u, s, v
    return u[:, order], s[order], v[:, order]


def _dgejsv(a, mode='A'):
    """Compute SVD using the (more accurate) Jacobi method"""
    # GEJSV can only handle tall matrices
    m, n = a.shape
    if m < n:
        u, s, v = _dgejsv(a.T, mode)
        return v, s, u

    mode = mode.upper()
    joba = dict(zip("CEFGAR", range(6)))[mode]
    s, u, v, _stat, istat, info = _lapack_dgejsv(a, joba)
    if info < 0:
        raise ValueError("LAPACK error - invalid parameter")
    if istat[2] != 0:
        warn("a contained denormalized floats - possible loss of accuracy",
             UserWarning, 2)
    if info > 0:
        warn("SVD did not converge", UserWarning, 2)
    return u[:, :n], s[:n], v


def _ddouble_svd_trunc(a):
    """Truncated SVD with double double precision"""
    if _xprec_linalg is None:
        raise RuntimeError("require xprec package for this precision")
    u, s, vh = _xprec_linalg.svd_trunc(a)
    return u, s, vh.T
