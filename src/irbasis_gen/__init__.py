"""
On-the-fly generation of the intermediate representation (IR) basis
====================================================================

This library computes the intermediate representation of imaginary-time
and Matsubara-frequency propagators for arbitrary cutoff Λ.  It provides:

 - singular value expansion of the fermionic and bosonic continuation kernel
   in double-double precision (through the xprec package)
 - basis functions as exact piecewise polynomials
 - exact transforms of the basis functions to Matsubara frequencies
"""
__copyright__ = "2020-2022 Markus Wallerberger, Hiroshi Shinaoka, and others"
__license__ = "MIT"
__version__ = "0.1.0"

from ._util import (RangeError, DomainError, ConfigurationError,
                    NumericalInstabilityError, NodeConvergenceWarning)
from .kernel import FermionicKernel, BosonicKernel, get_kernel
from .sve import compute as compute_sve, SVEResult
from .basis import IRBasis, basis_f, basis_b
