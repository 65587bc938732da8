'''
file:       symgeigs/algebra/operators.py

Operator contracts and concrete operators for the generalized eigenvalue problem

$$
A x = \\lambda B x.
$$

Two capabilities are consumed by the eigensolvers:

- a matrix-vector product ``y = M x`` (``MatProdOp``: ``rows``, ``cols``, ``perform_op``),
  used for $B$;
- a shifted solve ``y = (A - \\sigma B)^{-1} x`` (``ShiftSolveOp``: additionally ``set_shift``),
  which factorizes $A - \\sigma B$ once when the shift is injected.

``perform_op(x, out=None)`` writes into ``out`` when it is given and returns the result.

Concrete operators for dense NumPy arrays and SciPy sparse matrices are provided.
Dense factorizations use LU (``scipy.linalg.lu_factor``), sparse ones SuperLU
(``scipy.sparse.linalg.splu``).
'''

import warnings
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

import numpy as np
import scipy.linalg as la
import scipy.sparse as sp
import scipy.sparse.linalg as sla
from numpy.typing import NDArray

from .eigen.result import EigenSolverError, EigenSolverErrorMsg, is_hermitian

# -----------------------------------------------------------------------------
#! Type hints
# -----------------------------------------------------------------------------

MatrixLike  = Union[NDArray, sp.spmatrix]
MatVecFunc  = Callable[[NDArray], NDArray]

# -----------------------------------------------------------------------------
#! Contracts
# -----------------------------------------------------------------------------

class MatProdOp(ABC):
    '''
    Square linear operator ``y = M x`` of dimension ``n``.
    '''

    @abstractmethod
    def rows(self) -> int: ...

    @abstractmethod
    def cols(self) -> int: ...

    @abstractmethod
    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray: ...

    @property
    def n(self) -> int:
        return self.rows()

class ShiftSolveOp(MatProdOp):
    '''
    Shifted solve ``y = (A - sigma B)^{-1} x``.

    ``set_shift`` is called exactly once before the first ``perform_op`` and must
    raise if the shifted matrix cannot be factorized.
    '''

    @abstractmethod
    def set_shift(self, sigma: float) -> None: ...

# -----------------------------------------------------------------------------

def _write(result: NDArray, out: Optional[NDArray]) -> NDArray:
    if out is None:
        return result
    out[...] = result
    return out

def _check_square(M, name: str) -> int:
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH, f"{name} must be square, got shape {M.shape}")
    return M.shape[0]

def _pivot_ratio(pivots: NDArray) -> float:
    pivots = np.abs(pivots)
    if pivots.size == 0 or not np.all(np.isfinite(pivots)):
        return 0.0
    pmax = float(np.max(pivots))
    return float(np.min(pivots)) / pmax if pmax > 0 else 0.0

# -----------------------------------------------------------------------------
#! Matrix-vector products
# -----------------------------------------------------------------------------

class DenseSymMatProd(MatProdOp):
    '''
    ``y = M x`` for a dense symmetric matrix.
    '''

    def __init__(self, M: NDArray, check_symmetric: bool = True):
        self._mat = np.asarray(M)
        self._n   = _check_square(self._mat, "M")
        if check_symmetric and not is_hermitian(self._mat, tol=1e-10 * max(1.0, float(np.max(np.abs(self._mat), initial=0.0)))):
            raise EigenSolverError(EigenSolverErrorMsg.INVALID_INPUT, "M must be symmetric")

    def rows(self) -> int: return self._n
    def cols(self) -> int: return self._n

    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray:
        if out is None:
            return self._mat @ x
        return np.matmul(self._mat, x, out=out)

class SparseSymMatProd(MatProdOp):
    '''
    ``y = M x`` for a SciPy sparse symmetric matrix (stored as CSR).
    '''

    def __init__(self, M: sp.spmatrix):
        self._mat = sp.csr_matrix(M)
        self._n   = _check_square(self._mat, "M")

    def rows(self) -> int: return self._n
    def cols(self) -> int: return self._n

    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray:
        return _write(self._mat @ x, out)

class FunctionOp(MatProdOp):
    '''
    Matrix-free operator built from a ``matvec`` callable of dimension ``n``.
    '''

    def __init__(self, matvec: MatVecFunc, n: int):
        if n < 1:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH, f"n must be positive, got {n}")
        self._matvec    = matvec
        self._n         = int(n)

    def rows(self) -> int: return self._n
    def cols(self) -> int: return self._n

    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray:
        return _write(np.asarray(self._matvec(x)), out)

class IdentityOp(MatProdOp):
    '''
    ``y = x``, the B operator of a standard eigenvalue problem.
    '''

    def __init__(self, n: int):
        self._n = int(n)

    def rows(self) -> int: return self._n
    def cols(self) -> int: return self._n

    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray:
        if out is None:
            return np.array(x, copy=True)
        return _write(x, out)

def as_mat_prod(M: Union[MatrixLike, MatProdOp]) -> MatProdOp:
    '''
    Wraps a dense or sparse matrix into the matching product operator.
    Operators are returned unchanged.
    '''
    if isinstance(M, MatProdOp):
        return M
    if sp.issparse(M):
        return SparseSymMatProd(M)
    return DenseSymMatProd(M)

# -----------------------------------------------------------------------------
#! Shifted solve
# -----------------------------------------------------------------------------

class SymShiftInvert(ShiftSolveOp):
    '''
    ``y = (A - sigma B)^{-1} x`` for symmetric ``A`` and ``B`` (dense or sparse).

    ``B = None`` means the identity. The factorization of ``A - sigma B`` is
    computed once in ``set_shift`` and reused by every ``perform_op``.

    Example:
        >>> op = SymShiftInvert(A, B)
        >>> op.set_shift(2.5)
        >>> y  = op.perform_op(x)
    '''

    def __init__(self, A: MatrixLike, B: Optional[MatrixLike] = None):
        self._sparse    = sp.issparse(A) or sp.issparse(B)
        self._n         = _check_square(A, "A")
        if B is not None and _check_square(B, "B") != self._n:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH,
                    f"A and B must have the same dimension, got {A.shape} and {B.shape}")

        if self._sparse:
            self._A     = sp.csc_matrix(A)
            self._B     = sp.identity(self._n, format='csc') if B is None else sp.csc_matrix(B)
        else:
            self._A     = np.asarray(A)
            self._B     = np.eye(self._n) if B is None else np.asarray(B)
        self._dtype     = np.result_type(self._A.dtype, self._B.dtype, np.float64)
        self._solve     : Optional[MatVecFunc] = None
        self._sigma     : Optional[float]      = None

    def rows(self) -> int: return self._n
    def cols(self) -> int: return self._n

    @property
    def sigma(self) -> Optional[float]:
        return self._sigma

    # -------------------------------------------------------------------------

    def set_shift(self, sigma: float) -> None:
        shifted = self._A - sigma * self._B
        if self._sparse:
            try:
                fac = sla.splu(sp.csc_matrix(shifted, dtype=self._dtype))
            except RuntimeError as e:
                raise EigenSolverError(EigenSolverErrorMsg.MAT_SINGULAR,
                        f"A - sigma * B is singular for sigma={sigma}: {e}") from e
            # SuperLU gives no condition estimate, use the pivot ratio of U
            self._check_rcond(_pivot_ratio(fac.U.diagonal()), sigma)
            self._solve = fac.solve
        else:
            shifted = np.asarray(shifted, dtype=self._dtype)
            anorm   = float(np.linalg.norm(shifted, 1))
            with warnings.catch_warnings():
                # singular factorizations are reported through rcond below
                warnings.simplefilter('ignore', la.LinAlgWarning)
                lu, piv = la.lu_factor(shifted, check_finite=True)
            pivots  = np.diag(lu)
            if np.any(pivots == 0) or not np.all(np.isfinite(pivots)):
                rcond = 0.0
            else:
                gecon       = la.get_lapack_funcs('gecon', (lu,))
                rcond, info = gecon(lu, anorm, norm='1')
                if info != 0:
                    rcond = 0.0
            self._check_rcond(float(rcond), sigma)
            self._solve = lambda b: la.lu_solve((lu, piv), b, check_finite=False)
        self._sigma = float(sigma)

    def _check_rcond(self, rcond: float, sigma: float) -> None:
        eps = float(np.finfo(self._dtype).eps)
        if not rcond >= self._n * eps:
            raise EigenSolverError(EigenSolverErrorMsg.MAT_SINGULAR,
                    f"A - sigma * B is numerically singular for sigma={sigma} (rcond={rcond:.3e})")

    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray:
        if self._solve is None:
            raise EigenSolverError(EigenSolverErrorMsg.SHIFT_NOT_SET, "set_shift must be called before perform_op")
        return _write(self._solve(np.asarray(x, dtype=self._dtype)), out)

# -----------------------------------------------------------------------------
#! EOF
# -----------------------------------------------------------------------------
