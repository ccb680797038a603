# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
import numpy as np
import pytest

import irbasis_gen
from irbasis_gen import svd
from irbasis_gen import _util

BASES = [('F', 0.1), ('F', 10), ('B', 10), ('F', 300)]


@pytest.mark.parametrize("stat,lambda_", BASES)
def test_orthonormal(bases, stat, lambda_):
    basis = bases[stat, lambda_]
    eye = np.eye(basis.dim())
    uu = basis.u.overlap(lambda x: basis.u(x).T)
    np.testing.assert_allclose(uu, eye, atol=1e-8, rtol=0)
    vv = basis.v.overlap(lambda y: basis.v(y).T)
    np.testing.assert_allclose(vv, eye, atol=1e-8, rtol=0)


@pytest.mark.parametrize("stat,lambda_", BASES)
def test_parity(bases, stat, lambda_):
    basis = bases[stat, lambda_]
    x = np.linspace(0, 1, 31)
    sign = (-1) ** np.arange(basis.dim())[:, None]
    np.testing.assert_allclose(basis.u(-x), sign * basis.u(x), atol=1e-8,
                               rtol=0)
    np.testing.assert_allclose(basis.v(-x), sign * basis.v(x), atol=1e-8,
                               rtol=0)
    np.testing.assert_array_equal(basis.u.symm, sign.ravel())


@pytest.mark.parametrize("stat,lambda_", BASES)
def test_singular_values(bases, stat, lambda_):
    basis = bases[stat, lambda_]
    s = basis.s
    assert s.dtype == np.float64
    assert basis.dim() > 3
    assert (s[1:] <= s[:-1]).all()
    assert s[-1] >= 1e-12 * s[0]
    assert basis.sl(0) == s[0]
    assert basis.sl(basis.dim() - 1) == s[-1]


@pytest.mark.parametrize("stat,lambda_", BASES)
def test_endpoint_sign(bases, stat, lambda_):
    basis = bases[stat, lambda_]
    assert (basis.u(1.0) >= 0).all()
    assert (basis.ulx(0, 1.0) > 0)


@pytest.mark.parametrize("stat,lambda_", [('F', 10), ('B', 10)])
def test_expansion(bases, stat, lambda_):
    basis = bases[stat, lambda_]
    x = np.linspace(-1, 1, 23)
    y = np.linspace(-1, 1, 19)
    K = basis.kernel
    approx = np.einsum('lx,l,ly->xy', basis.u(x), basis.s, basis.v(y))
    np.testing.assert_allclose(approx, K(x[:, None], y[None, :]),
                               atol=1e-9 * basis.s[0], rtol=0)


@pytest.mark.parametrize("stat", ['F', 'B'])
def test_high_temperature(stat):
    basis = irbasis_gen.IRBasis(stat, 0.1, max_dim=20)
    assert basis.dim() > 3

    x = np.linspace(-1, 1, 10)[1:-1]
    np.testing.assert_allclose(basis.ulx(0, x), np.sqrt(0.5), atol=0.02)
    np.testing.assert_allclose(basis.ulx(1, x), np.sqrt(1.5) * x, atol=0.02)
    np.testing.assert_allclose(basis.ulx(2, x),
                               np.sqrt(2.5) * (1.5 * x**2 - 0.5), atol=0.02)


def test_high_temperature_fixture(bases):
    basis = bases['F', 0.1]
    x = np.linspace(-1, 1, 10)[1:-1]
    np.testing.assert_allclose(basis.u[1](x), np.sqrt(1.5) * x, atol=0.02)


def test_insulating_gtau(bases):
    beta = 100.0
    basis = bases['F', 300]
    assert basis.dim() >= 30

    def gtau(x):
        # exp(-beta/2) * cosh(beta/2 * x), avoiding overflow
        return .5 * (np.exp(beta/2 * (x - 1)) + np.exp(-beta/2 * (x + 1)))

    u = basis.u[:30]
    coeff = u.overlap(gtau, n_gauss=40)
    x = basis.u.knots
    np.testing.assert_allclose(coeff @ u(x), gtau(x), atol=1e-6, rtol=0)

    # Only even basis functions contribute to an even function
    np.testing.assert_allclose(coeff[1::2], 0, atol=1e-10)


def test_range_errors(bases):
    basis = bases['F', 10]
    dim = basis.dim()
    for l in (-1, dim, dim + 10):
        with pytest.raises(irbasis_gen.RangeError):
            basis.sl(l)
        with pytest.raises(irbasis_gen.RangeError):
            basis.ulx(l, 0.5)
        with pytest.raises(irbasis_gen.RangeError):
            basis.vly(l, 0.5)
    with pytest.raises(IndexError):
        basis.ul(1.5)


def test_domain_errors(bases):
    basis = bases['F', 10]
    with pytest.raises(irbasis_gen.DomainError):
        basis.ulx(0, 1.1)
    with pytest.raises(irbasis_gen.DomainError):
        basis.vly(0, [-0.5, -1.5])
    with pytest.raises(ValueError):
        basis.u(-2.0)


def test_evaluate_array(bases):
    basis = bases['B', 10]
    x = np.array([[-1, -0.3], [0.2, 1]])
    assert basis.ulx(3, x).shape == (2, 2)
    np.testing.assert_array_equal(basis.ulx(3, x), basis.u(x)[3])
    np.testing.assert_array_equal(basis.vly(2, x), basis.vl(2)(x))
    assert basis.u(x).shape == (basis.dim(), 2, 2)


@pytest.mark.skipif(not svd.is_extended(svd.MAX_DTYPE),
                    reason="requires extended precision")
def test_extended_evaluation(bases):
    basis = bases['F', 10]
    x = np.linspace(-1, 1, 21)
    xdd = x.astype(svd.MAX_DTYPE)
    for l in (0, 5, basis.dim() - 1):
        result = basis.ulx(l, xdd)
        assert result.dtype == svd.MAX_DTYPE
        assert basis.ulx(l, x).dtype == np.float64
        np.testing.assert_allclose(result.astype(float), basis.ulx(l, x),
                                   atol=1e-10, rtol=0)


def test_reuse_sve_result(bases):
    basis = bases['F', 10]
    smaller = irbasis_gen.basis_f(10, max_dim=6, sve_result=basis.sve_result)
    assert smaller.dim() == 6
    np.testing.assert_array_equal(smaller.s, basis.s[:6])
    np.testing.assert_array_equal(smaller.u(0.3), basis.u(0.3)[:6])

    with pytest.raises(irbasis_gen.ConfigurationError):
        irbasis_gen.basis_b(10, max_dim=6, sve_result=basis.sve_result)
    with pytest.raises(irbasis_gen.ConfigurationError):
        irbasis_gen.basis_f(11, max_dim=6, sve_result=basis.sve_result)


def test_max_dim():
    basis = irbasis_gen.basis_f(10, max_dim=5)
    assert basis.dim() == 5


@pytest.mark.skipif(not svd.is_extended(svd.MAX_DTYPE),
                    reason="requires extended precision")
def test_cutoff_below_working_precision():
    # The required precision exceeds the widest dtype: warn and carry on
    with pytest.warns(UserWarning, match="lower\nprecision than the cutoff"):
        basis = irbasis_gen.basis_f(10, max_dim=30, cutoff=1e-17)
    assert 0 < basis.dim() <= 30
    assert (basis.s[1:] <= basis.s[:-1]).all()
    uu = basis.u.overlap(lambda x: basis.u(x).T)
    np.testing.assert_allclose(uu, np.eye(basis.dim()), atol=1e-8, rtol=0)


@pytest.mark.parametrize("args", [
    ('X', 10, 10),
    ('F', 0, 10),
    ('B', -1, 10),
    ('F', 10, 0),
    ('F', 10, 2.5),
    ('F', 10, 'many'),
    ('B', 10, None),
    ])
def test_invalid(args):
    with pytest.raises(irbasis_gen.ConfigurationError):
        irbasis_gen.IRBasis(*args)


def test_accessors(bases):
    basis = bases['B', 10]
    assert basis.statistics == 'B'
    assert basis.lambda_ == 10
    assert basis.kernel.statistics == 'B'
    assert basis.u.shape == basis.v.shape == (basis.dim(),)
    assert basis.ul(2).shape == ()
    assert 'IRBasis' in repr(basis)
    with pytest.raises(ValueError):
        basis.s[0] = 0
    assert isinstance(_util.RangeError(), IndexError)
