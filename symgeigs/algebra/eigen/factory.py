"""
Generalized Eigenvalue Solver Interface

Explicit mode selection for the symmetric generalized eigenvalue problem
A x = lambda B x, and a one-call helper for the shift-and-invert mode.

----------------------------------------------
File        : symgeigs/algebra/eigen/factory.py
----------------------------------------------
"""

import numpy as np
from enum import Enum, auto, unique
from numpy.typing import NDArray
from typing import Optional, Union, Any

from .result        import EigenResult, CompInfo, EigenSolverError, EigenSolverErrorMsg
from .sorting       import SortRule
from .shift_invert  import SymGEigsShiftSolver
from ..operators    import MatProdOp, ShiftSolveOp, SymShiftInvert, IdentityOp, MatrixLike, as_mat_prod
from ...common.flog import get_global_logger

# ----------------------------------------------------------------------------------------

@unique
class GEigsMode(Enum):
    """
    Spectral transformation used for A x = lambda B x.
    """
    CHOLESKY        = auto()    # B = L L^T, standard problem for L^-1 A L^-T
    REGULAR_INVERSE = auto()    # B^-1 A
    SHIFT_INVERT    = auto()    # (A - sigma B)^-1 B
    BUCKLING        = auto()    # (A - sigma B)^-1 A
    CAYLEY          = auto()    # (A - sigma B)^-1 (A + sigma B)

    @classmethod
    def from_any(cls, mode) -> 'GEigsMode':
        if isinstance(mode, cls):
            return mode
        if isinstance(mode, str):
            key = mode.strip().upper().replace('-', '_')
            if key in cls.__members__:
                return cls[key]
        raise EigenSolverError(EigenSolverErrorMsg.METHOD_NOT_IMPL, f"Unknown generalized eigensolver mode: {mode!r}")

IMPLEMENTED_MODES = frozenset({GEigsMode.SHIFT_INVERT})

# ----------------------------------------------------------------------------------------

def default_ncv(nev: int, n: int) -> int:
    '''
    Krylov subspace size used when none is given: max(2 nev + 1, 20), capped at n.
    '''
    return min(n, max(2 * nev + 1, 20))

def choose_geigs_solver(mode    : Union[GEigsMode, str],
                        op      : ShiftSolveOp,
                        bop     : MatProdOp,
                        nev     : int,
                        ncv     : int,
                        sigma   : float = 0.0,
                        **kwargs) -> SymGEigsShiftSolver:
    '''
    Returns the solver implementing ``mode``.

    Parameters:
    -----------
        mode:
            GEigsMode or its name ('shift-invert', 'SHIFT_INVERT', ...)
        op, bop:
            Operator pair of the mode (for SHIFT_INVERT: shifted solve and B product)
        nev, ncv:
            Number of requested eigenvalues and Krylov subspace dimension
        sigma:
            Shift
        kwargs:
            Passed to the solver (seed, logger)
    '''
    mode = GEigsMode.from_any(mode)
    if mode not in IMPLEMENTED_MODES:
        raise EigenSolverError(EigenSolverErrorMsg.METHOD_NOT_IMPL, f"Mode {mode.name} is not implemented")
    return SymGEigsShiftSolver(op, bop, nev, ncv, sigma, **kwargs)

# ----------------------------------------------------------------------------------------
#! One-call helper
# ----------------------------------------------------------------------------------------

def eigsh_shift_invert(A            : MatrixLike,
                       B            : Optional[MatrixLike]  = None,
                       k            : int                   = 6,
                       sigma        : float                 = 0.0,
                       ncv          : Optional[int]         = None,
                       v0           : Optional[NDArray]     = None,
                       maxit        : int                   = 1000,
                       tol          : float                 = 1e-10,
                       selection    : Any                   = SortRule.LARGEST_MAGN,
                       sorting      : Any                   = None,
                       seed         : Optional[int]         = None,
                       logger                               = None) -> EigenResult:
    r"""
    Computes the ``k`` eigenpairs of $A x = \lambda B x$ closest to ``sigma``.

    Parameters:
    -----------
        A:
            Symmetric matrix (dense ndarray or scipy.sparse)
        B:
            Symmetric positive definite matrix, identity if None
        k:
            Number of eigenpairs
        sigma:
            Shift, must not be an eigenvalue
        ncv:
            Krylov subspace size (default: ``default_ncv(k, n)``)
        v0:
            Initial residual vector
        maxit, tol:
            Restart limit and relative tolerance
        selection, sorting:
            Sort rules for the transformed values and for the result
            (``sorting`` defaults to ``selection``)
        seed:
            Seed of the random initial vector
        logger:
            Logger instance

    Returns:
        EigenResult with B-normalized eigenvectors and residuals ||A x - lambda B x||
    """
    logger  = logger if logger is not None else get_global_logger()
    n       = A.shape[0]
    ncv     = default_ncv(k, n) if ncv is None else ncv

    op      = SymShiftInvert(A, B)
    bop     = IdentityOp(n) if B is None else as_mat_prod(B)
    solver  = choose_geigs_solver(GEigsMode.SHIFT_INVERT, op, bop, k, ncv, sigma, seed=seed, logger=logger)
    solver.init(v0)
    solver.compute(selection, maxit=maxit, tol=tol, sorting=sorting)

    evals   = solver.eigenvalues()
    evecs   = solver.eigenvectors()
    amat    = as_mat_prod(A)
    resid   = np.array([np.linalg.norm(amat.perform_op(evecs[:, i]) - evals[i] * bop.perform_op(evecs[:, i]))
                        for i in range(len(evals))])
    info    = solver.info()

    logger.info(f"shift-invert (sigma={solver.sigma:.6g}): {len(evals)}/{k} converged, "
                f"{solver.num_iterations()} restarts, {solver.num_operations()} operations", lvl=1)

    return EigenResult(
        eigenvalues     = evals,
        eigenvectors    = evecs,
        iterations      = solver.num_iterations(),
        converged       = info is CompInfo.SUCCESSFUL,
        residual_norms  = resid,
        info            = info)

# ----------------------------------------------------------------------------------------
#! EOF
# ----------------------------------------------------------------------------------------
