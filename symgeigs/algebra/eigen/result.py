"""
Eigenvalue Solver Result Types

Standardized result containers, status codes and errors for eigenvalue computations.
"""

import numpy as np
import scipy.sparse as sp
from enum import Enum, auto, unique
from typing import Optional, NamedTuple
from numpy.typing import NDArray

# ---------------------------------------------------------------------------------
#! Status
# ---------------------------------------------------------------------------------

@unique
class CompInfo(Enum):
    """
    Status of an iterative eigensolver. Set exclusively by the base solver.
    """
    NOT_COMPUTED    = auto()    # constructed or initialized, compute not called yet
    COMPUTING       = auto()    # inside the restart loop
    SUCCESSFUL      = auto()    # all requested eigenpairs converged
    NOT_CONVERGING  = auto()    # maximum number of restarts reached
    NUMERICAL_ISSUE = auto()    # an operator raised during init or compute

# ---------------------------------------------------------------------------------
#! Errors
# ---------------------------------------------------------------------------------

class EigenSolverErrorMsg(Enum):
    '''
    Enumeration class for eigensolver error codes.
    '''
    DIM_MISMATCH        = 201
    INVALID_NEV         = 202
    INVALID_NCV         = 203
    INVALID_SORT_RULE   = 204
    METHOD_NOT_IMPL     = 205
    NOT_INITIALIZED     = 206
    ALREADY_COMPUTED    = 207
    SHIFT_NOT_SET       = 208
    MAT_SINGULAR        = 209
    INVALID_INPUT       = 210
    KRYLOV_BREAKDOWN    = 211

    def __str__(self):
        return self.name.replace('_', ' ').title()

    def __repr__(self):
        return f"<{self.__class__.__name__}.{self.name}: '{str(self)}'>"

class EigenSolverError(Exception):
    '''
    Raised for configuration errors, usage errors and failed factorizations.
    '''
    def __init__(self, code: EigenSolverErrorMsg, message: Optional[str] = None):
        self.code       = code
        self.message    = message if message else str(code)
        super().__init__(self.message)

    def __str__(self):
        return f"[EigenSolverError {self.code.name} ({self.code.value})]: {self.message}"

    def __repr__(self):
        return self.__str__()

# ---------------------------------------------------------------------------------

def is_hermitian(A, tol=1e-12) -> bool:
    """Check if A is symmetric/Hermitian, works for dense and sparse."""
    if sp.issparse(A):
        diff = (A - A.T.conjugate()).tocsr()
        return diff.nnz == 0 or bool(np.all(np.abs(diff.data) < tol))
    return bool(np.allclose(A, A.T.conj(), atol=tol))

# ---------------------------------------------------------------------------------

class EigenResult(NamedTuple):
    r"""
    Standardized result from eigenvalue solvers.

    Attributes:
        eigenvalues:
            Converged eigenvalues, ordered by the requested sort rule
        eigenvectors:
            Corresponding eigenvectors as columns
        iterations:
            Number of restarts performed
        converged:
            Whether all requested eigenpairs converged
        residual_norms:
            Residual norms ||A v - \lambda B v|| for each eigenpair (optional)
        info:
            Final status of the solver
    """
    eigenvalues     : NDArray
    eigenvectors    : NDArray
    iterations      : Optional[int]         = None
    converged       : bool                  = True
    residual_norms  : Optional[NDArray]     = None
    info            : CompInfo              = CompInfo.SUCCESSFUL

    def __repr__(self):
        n_eigs      = len(self.eigenvalues) if self.eigenvalues is not None else 0
        iter_str    = f"{self.iterations}" if self.iterations is not None else "N/A"
        return (f"EigenResult(n_eigenvalues={n_eigs}, "
                f"converged={self.converged}, iterations={iter_str}, info={self.info.name})")

    def __str__(self):
        return f'converged={self.converged}, iterations={self.iterations}'

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
