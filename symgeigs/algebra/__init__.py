"""
Linear algebra layer: operators, environment defaults and eigensolvers.

Submodules:
    - operators : operator contracts (MatProdOp, ShiftSolveOp) and dense/sparse adapters
    - utils     : PY_GLOBAL_SEED / PY_FLOATING_POINT defaults
    - eigen     : restarted Lanczos and shift-and-invert solvers
"""

from typing import TYPE_CHECKING
import importlib

_LAZY_IMPORTS = {
    'eigen'                 : ('.eigen', None),
    'operators'             : ('.operators', None),
    'utils'                 : ('.utils', None),
    'MatProdOp'             : ('.operators', 'MatProdOp'),
    'ShiftSolveOp'          : ('.operators', 'ShiftSolveOp'),
    'DenseSymMatProd'       : ('.operators', 'DenseSymMatProd'),
    'SparseSymMatProd'      : ('.operators', 'SparseSymMatProd'),
    'FunctionOp'            : ('.operators', 'FunctionOp'),
    'IdentityOp'            : ('.operators', 'IdentityOp'),
    'SymShiftInvert'        : ('.operators', 'SymShiftInvert'),
}

_LAZY_CACHE = {}

if TYPE_CHECKING:
    from . import eigen, operators, utils
    from .operators import (MatProdOp, ShiftSolveOp, DenseSymMatProd, SparseSymMatProd,
                            FunctionOp, IdentityOp, SymShiftInvert)

def __getattr__(name: str):
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
