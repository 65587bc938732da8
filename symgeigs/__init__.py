"""
symgeigs: symmetric generalized eigensolvers in shift-and-invert mode.

Finds the eigenpairs of A x = lambda B x (A symmetric, B symmetric positive
definite) closest to a shift sigma with a restarted Lanczos method applied to
(A - sigma B)^{-1} B.

Quick start:
    >>> from symgeigs import eigsh_shift_invert
    >>> res = eigsh_shift_invert(A, B, k=4, sigma=1.0)
    >>> res.eigenvalues, res.residual_norms

Modules are imported lazily on first attribute access.
"""

from typing import TYPE_CHECKING
import importlib

__version__ = "0.1.0"

_LAZY_IMPORTS = {
    'algebra'               : ('.algebra', None),
    'common'                : ('.common', None),
    'SymGEigsShiftSolver'   : ('.algebra.eigen.shift_invert', 'SymGEigsShiftSolver'),
    'SymEigsBase'           : ('.algebra.eigen.lanczos', 'SymEigsBase'),
    'SortRule'              : ('.algebra.eigen.sorting', 'SortRule'),
    'CompInfo'              : ('.algebra.eigen.result', 'CompInfo'),
    'EigenResult'           : ('.algebra.eigen.result', 'EigenResult'),
    'EigenSolverError'      : ('.algebra.eigen.result', 'EigenSolverError'),
    'GEigsMode'             : ('.algebra.eigen.factory', 'GEigsMode'),
    'choose_geigs_solver'   : ('.algebra.eigen.factory', 'choose_geigs_solver'),
    'eigsh_shift_invert'    : ('.algebra.eigen.factory', 'eigsh_shift_invert'),
    'SymShiftInvert'        : ('.algebra.operators', 'SymShiftInvert'),
    'DenseSymMatProd'       : ('.algebra.operators', 'DenseSymMatProd'),
    'SparseSymMatProd'      : ('.algebra.operators', 'SparseSymMatProd'),
    'get_global_logger'     : ('.common.flog', 'get_global_logger'),
}

_LAZY_CACHE = {}

if TYPE_CHECKING:
    from . import algebra, common
    from .algebra.eigen.shift_invert import SymGEigsShiftSolver
    from .algebra.eigen.lanczos import SymEigsBase
    from .algebra.eigen.sorting import SortRule
    from .algebra.eigen.result import CompInfo, EigenResult, EigenSolverError
    from .algebra.eigen.factory import GEigsMode, choose_geigs_solver, eigsh_shift_invert
    from .algebra.operators import SymShiftInvert, DenseSymMatProd, SparseSymMatProd
    from .common.flog import get_global_logger

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

def __dir__():
    return sorted(list(globals().keys()) + list(_LAZY_IMPORTS.keys()))

__all__ = ['__version__'] + list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
