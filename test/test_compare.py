# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
import numpy as np
import pytest

import irbasis_gen

try:
    import irbasis
except ImportError:
    pytest.skip("no irbasis library for comparison", allow_module_level=True)
    raise

COMPARE_PARAMS = [
    ('F', 10),
    ('B', 10),
    ('F', 100),
    ('B', 100),
    ]

# Return of fixture functions are passed as parameters to test functions
# if the parameter has the same name as the fixture function.  scope="module"
# ensures that fixtures are cached.

@pytest.fixture(scope="module")
def generated():
    return {(stat, lambda_): irbasis_gen.IRBasis(stat, lambda_, max_dim=30)
            for (stat, lambda_) in COMPARE_PARAMS}


@pytest.fixture(scope="module")
def references():
    return {params: irbasis.load(*params) for params in COMPARE_PARAMS}


@pytest.mark.parametrize("stat,lambda_", COMPARE_PARAMS)
def test_svals(stat, lambda_, generated, references):
    gen = generated[stat, lambda_]
    ref = references[stat, lambda_]
    shared_dim = min(gen.dim(), ref.dim())
    assert shared_dim > 10

    s_ref = np.array([ref.sl(l) for l in range(shared_dim)])
    np.testing.assert_allclose(gen.s[:shared_dim], s_ref,
                               atol=1e-10 * s_ref[0], rtol=0)


@pytest.mark.parametrize("stat,lambda_", COMPARE_PARAMS)
def test_ulx(stat, lambda_, generated, references):
    gen = generated[stat, lambda_]
    ref = references[stat, lambda_]
    shared_dim = min(gen.dim(), ref.dim())

    x = [-1., -.9999, -.999, -.99, -.9, -.5, 0., .5, .9, .99, .999, .9999, 1.]
    for li in [0, 1, 2, shared_dim//2, shared_dim//2 + 1, shared_dim-1]:
        ulx_gen = gen.ulx(li, np.array(x))
        ulx_ref = np.array([ref.ulx(li, xi) for xi in x])
        tol = 1e-8 * np.abs(ulx_ref).max()
        np.testing.assert_allclose(ulx_gen, ulx_ref, atol=tol, rtol=0)


@pytest.mark.parametrize("stat,lambda_", COMPARE_PARAMS)
def test_vly(stat, lambda_, generated, references):
    gen = generated[stat, lambda_]
    ref = references[stat, lambda_]
    shared_dim = min(gen.dim(), ref.dim())

    y = [-1., -.5, -.1, -.01, -.001, -.0001, 0, .0001, .001, .01, .1, .5, 1.]
    for li in [0, 1, 2, shared_dim//2, shared_dim//2 + 1, shared_dim-1]:
        vly_gen = gen.vly(li, np.array(y))
        vly_ref = np.array([ref.vly(li, yi) for yi in y])
        tol = 1e-8 * np.abs(vly_ref).max()
        np.testing.assert_allclose(vly_gen, vly_ref, atol=tol, rtol=0)


@pytest.mark.parametrize("stat,lambda_", COMPARE_PARAMS)
def test_tnl(stat, lambda_, generated, references):
    gen = generated[stat, lambda_]
    ref = references[stat, lambda_]
    shared_dim = min(gen.dim(), ref.dim())

    n = np.array([0, 1, 2, 20, 100, 300, 1000])
    tnl_gen = gen.compute_tnl(n)[:, :shared_dim]
    tnl_ref = ref.compute_unl(n)[:, :shared_dim]
    tol = 1e-8 * np.abs(tnl_ref).max()
    np.testing.assert_allclose(tnl_gen, tnl_ref, atol=tol, rtol=0)
