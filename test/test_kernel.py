# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
import numpy as np
import pytest

from irbasis_gen import kernel
from irbasis_gen import svd
from irbasis_gen import _util

KERNELS = [
    kernel.FermionicKernel(9),
    kernel.BosonicKernel(8),
    kernel.FermionicKernel(1000),
    kernel.BosonicKernel(1000),
    ]


def _fermionic_ref(lambda_, x, y):
    return np.exp(-lambda_/2 * x * y) / (2 * np.cosh(lambda_/2 * y))


def _bosonic_ref(lambda_, x, y):
    return y * np.exp(-lambda_/2 * x * y) / (2 * np.sinh(lambda_/2 * y))


@pytest.mark.parametrize("lambda_", [0.1, 10, 300])
def test_fermionic_values(lambda_):
    x = np.linspace(-1, 1, 21)[:, None]
    y = np.linspace(-1, 1, 21)[None, :]
    K = kernel.FermionicKernel(lambda_)
    np.testing.assert_allclose(K(x, y), _fermionic_ref(lambda_, x, y),
                               rtol=1e-13)


@pytest.mark.parametrize("lambda_", [0.1, 10, 300])
def test_bosonic_values(lambda_):
    x = np.linspace(-1, 1, 21)[:, None]
    y = np.linspace(-1, 1, 20)[None, :]
    K = kernel.BosonicKernel(lambda_)
    np.testing.assert_allclose(K(x, y), _bosonic_ref(lambda_, x, y),
                               rtol=1e-13)


@pytest.mark.parametrize("K", [kernel.FermionicKernel(300),
                               kernel.BosonicKernel(300)])
def test_branch_continuity(K):
    # Straddle the threshold between the explicit and asymptotic forms
    y_switch = kernel.LARGE_V / K.lambda_
    ref = _fermionic_ref if K.statistics == 'F' else _bosonic_ref
    x = np.linspace(-1, 1, 11)
    for sign in (1, -1):
        for y in (y_switch - 1e-12, y_switch + 1e-12):
            np.testing.assert_allclose(K(x, sign * y),
                                       ref(K.lambda_, x, sign * y), rtol=1e-12)


@pytest.mark.parametrize("lambda_", [10, 42, 10_000])
def test_singularity(lambda_):
    x = np.random.rand(1000) * 2 - 1
    K = kernel.BosonicKernel(lambda_)
    np.testing.assert_allclose(K(x, [0.0]), 1 / lambda_)
    np.testing.assert_allclose(K(x, [1e-12]), 1 / lambda_, rtol=1e-8)


@pytest.mark.parametrize("K", KERNELS)
@pytest.mark.parametrize("sign", [1, -1])
def test_symmetrized(K, sign):
    x = np.linspace(0, 1, 31)[:, None]
    y = np.linspace(0, 1, 17)[None, :]
    Kred = K.get_symmetrized(sign)
    naive = K(x, y) + sign * K(x, -y)
    magn = np.abs(naive).max()
    np.testing.assert_allclose(Kred(x, y), naive, rtol=1e-12,
                               atol=1e-15 * magn)
    assert Kred.xrange == (0, 1)
    assert Kred.yrange == (0, 1)
    assert Kred.lambda_ == K.lambda_
    assert Kred.statistics == K.statistics


@pytest.mark.parametrize("K", [kernel.FermionicKernel(10),
                               kernel.BosonicKernel(10)])
def test_odd_small_argument(K):
    # Antisymmetrization cancels for x * y -> 0, but the explicit form keeps
    # the full relative precision.
    Kodd = K.get_symmetrized(-1)
    x = 1e-8
    y = np.array([1e-4, 1e-2, 0.5])
    if K.statistics == 'F':
        ref = -np.sinh(5 * x * y) / np.cosh(5 * y)
    else:
        ref = -y * np.sinh(5 * x * y) / np.sinh(5 * y)
    np.testing.assert_allclose(Kodd(x, y), ref, rtol=1e-14)


def test_centrosymmetric():
    x = np.linspace(-1, 1, 9)[:, None]
    y = np.linspace(-1, 1, 11)[None, :]
    for K in KERNELS:
        assert K.is_centrosymmetric
        np.testing.assert_allclose(K(x, y), K(-x, -y), rtol=1e-14)


def test_get_kernel():
    assert isinstance(kernel.get_kernel('F', 3), kernel.FermionicKernel)
    assert isinstance(kernel.get_kernel('B', 3), kernel.BosonicKernel)
    assert kernel.get_kernel('B', 3).statistics == 'B'
    with pytest.raises(_util.ConfigurationError):
        kernel.get_kernel('X', 3)


@pytest.mark.parametrize("lambda_", [0, -1.5])
def test_invalid_lambda(lambda_):
    with pytest.raises(_util.ConfigurationError):
        kernel.FermionicKernel(lambda_)
    with pytest.raises(ValueError):
        kernel.BosonicKernel(lambda_)


def test_domain():
    K = kernel.FermionicKernel(10)
    with pytest.raises(_util.DomainError):
        K(1.5, 0.0)
    with pytest.raises(_util.DomainError):
        K(0.0, -1.01)
    with pytest.raises(_util.DomainError):
        K.get_symmetrized(1)(-0.5, 0.5)


@pytest.mark.skipif(not svd.is_extended(svd.MAX_DTYPE),
                    reason="requires extended precision")
@pytest.mark.parametrize("K", KERNELS)
def test_extended_precision(K):
    x = np.linspace(-1, 1, 7)[:, None]
    y = np.linspace(-1, 1, 9)[None, :]
    result = K(x.astype(svd.MAX_DTYPE), y.astype(svd.MAX_DTYPE))
    assert result.dtype == svd.MAX_DTYPE
    np.testing.assert_allclose(result.astype(float), K(x, y), rtol=1e-12)
