# Copyright (C) 2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others
# SPDX-License-Identifier: MIT
#
# This file is available from EVERY test in the directory.  This is why
# we use it to compute the bases ONCE.
import pytest
import irbasis_gen


@pytest.fixture(scope="package")
def bases():
    """IR bases for a few values of statistics and Lambda"""
    print("Precomputing IR bases ...")
    return {
        ('F', 0.1):  irbasis_gen.basis_f(0.1, max_dim=20),
        ('F', 10):   irbasis_gen.basis_f(10, max_dim=100),
        ('B', 10):   irbasis_gen.basis_b(10, max_dim=100),
        ('F', 300):  irbasis_gen.basis_f(300, max_dim=100),
        }
