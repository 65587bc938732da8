"""
Generalized Eigenvalue Solvers Module

Restarted Lanczos solvers for the symmetric generalized eigenvalue problem
A x = lambda B x with B symmetric positive definite.

Available Solvers:
    - SymEigsBase           : restarted Lanczos in the B-inner product (extremal eigenvalues of OP)
    - SymGEigsShiftSolver   : shift-and-invert mode, eigenvalues nearest to a shift sigma

Factory Function:
    - choose_geigs_solver   : explicit mode selection (GEigsMode)
    - eigsh_shift_invert    : one-call helper for dense and sparse matrices

Standard Result:
    - EigenResult: Standardized return type (eigenvalues, eigenvectors, iterations, converged)

This module uses lazy imports to minimize startup overhead.
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    # Restarted Lanczos
    'LanczosFactorization'          : ('.lanczos', 'LanczosFactorization'),
    'SymEigsBase'                   : ('.lanczos', 'SymEigsBase'),
    # Shift-and-invert
    'SymGEigsShiftInvertOp'         : ('.shift_invert', 'SymGEigsShiftInvertOp'),
    'SymGEigsShiftSolver'           : ('.shift_invert', 'SymGEigsShiftSolver'),
    # Sort rules
    'SortRule'                      : ('.sorting', 'SortRule'),
    'sort_indices'                  : ('.sorting', 'sort_indices'),
    # Factory interface
    'GEigsMode'                     : ('.factory', 'GEigsMode'),
    'choose_geigs_solver'           : ('.factory', 'choose_geigs_solver'),
    'eigsh_shift_invert'            : ('.factory', 'eigsh_shift_invert'),
    'default_ncv'                   : ('.factory', 'default_ncv'),
    # Result type, status, errors
    'EigenResult'                   : ('.result', 'EigenResult'),
    'CompInfo'                      : ('.result', 'CompInfo'),
    'EigenSolverError'              : ('.result', 'EigenSolverError'),
    'EigenSolverErrorMsg'           : ('.result', 'EigenSolverErrorMsg'),
}

_LAZY_CACHE = {}

# For type checking only
if TYPE_CHECKING:
    from .lanczos       import LanczosFactorization, SymEigsBase
    from .shift_invert  import SymGEigsShiftInvertOp, SymGEigsShiftSolver
    from .sorting       import SortRule, sort_indices
    from .factory       import GEigsMode, choose_geigs_solver, eigsh_shift_invert, default_ncv
    from .result        import EigenResult, CompInfo, EigenSolverError, EigenSolverErrorMsg

# -----------------------------------------------------------------------------------------------

def __getattr__(name: str):
    """
    Module-level __getattr__ for lazy imports.
    """
    if name in _LAZY_CACHE:
        return _LAZY_CACHE[name]

    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_path, attr_name = _LAZY_IMPORTS[name]
    module = importlib.import_module(module_path, package=__name__)
    result = module if attr_name is None else getattr(module, attr_name)

    _LAZY_CACHE[name] = result
    return result

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
