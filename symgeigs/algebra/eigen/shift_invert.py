r"""
Generalized Eigen Solver in Shift-and-Invert Mode

Solves the symmetric generalized eigenvalue problem
$$
A x = \lambda B x,
$$
with $A$ symmetric and $B$ symmetric positive definite, for the eigenvalues
closest to a shift $\sigma$. The problem is transformed into
$$
(A - \sigma B)^{-1} B x = \nu x, \qquad \nu = \frac{1}{\lambda - \sigma},
$$
whose operator is self-adjoint in the B-inner product. Eigenvalues near
$\sigma$ become the largest $|\nu|$, which the Lanczos engine finds fastest.
After convergence the Ritz values are mapped back with
$\lambda = 1/\nu + \sigma$ and re-sorted with the caller's rule on $\lambda$,
so the order of the results never depends on the order in which the
transformed values were produced.

Example:
    >>> op     = SymShiftInvert(A, B)
    >>> bop    = DenseSymMatProd(B)
    >>> solver = SymGEigsShiftSolver(op, bop, nev=3, ncv=12, sigma=1.0)
    >>> solver.init()
    >>> nconv  = solver.compute(SortRule.LARGEST_MAGN)
    >>> if solver.info() is CompInfo.SUCCESSFUL:
    ...     evals = solver.eigenvalues()
    ...     evecs = solver.eigenvectors()

File        : symgeigs/algebra/eigen/shift_invert.py
"""

from typing import Optional, Type, TYPE_CHECKING
from numpy.typing import NDArray
import numpy as np

from .result import CompInfo, EigenSolverError, EigenSolverErrorMsg
from .sorting import SortRule, default_sorting
from .lanczos import SymEigsBase
from ..operators import MatProdOp
from ..utils import DEFAULT_FLOAT_TYPE

if TYPE_CHECKING:
    from ..operators import ShiftSolveOp
    from ...common.flog import Logger

# ----------------------------------------------------------------------------------------
#! Transformed operator
# ----------------------------------------------------------------------------------------

class SymGEigsShiftInvertOp(MatProdOp):
    r"""
    Operator $y = (A - \sigma B)^{-1} B x$ built from a shifted solve ``op``
    and the product ``bop`` with $B$.

    The intermediate $B x$ lives in a buffer owned by this object and reused
    across calls.
    """

    def __init__(self, op: 'ShiftSolveOp', bop: MatProdOp):
        n = op.rows()
        if op.cols() != n:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH,
                    f"Shift-solve operator must be square, got {n}x{op.cols()}")
        if bop.rows() != n or bop.cols() != n:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH,
                    f"B operator has dimension {bop.rows()}x{bop.cols()}, shift-solve operator {n}x{n}")
        self._op    = op
        self._bop   = bop
        self._n     = n
        self._cache = np.zeros(n, dtype=DEFAULT_FLOAT_TYPE)

    def rows(self) -> int: return self._n
    def cols(self) -> int: return self._n

    def perform_op(self, x: NDArray, out: Optional[NDArray] = None) -> NDArray:
        self._bop.perform_op(x, out=self._cache)
        return self._op.perform_op(self._cache, out=out)

# ----------------------------------------------------------------------------------------
#! Solver
# ----------------------------------------------------------------------------------------

class SymGEigsShiftSolver:
    r"""
    Finds ``nev`` eigenpairs of $A x = \lambda B x$ nearest to ``sigma``.

    Parameters:
    -----------
        op:
            Shifted solve, $y = (A - \sigma B)^{-1} x$. Must provide ``set_shift``,
            which is called exactly once here, after the sizes are validated
            and before any solve.
        bop:
            Product with $B$ (symmetric positive definite), $y = B x$
        nev:
            Number of requested eigenvalues, ``1 <= nev <= n - 1``
        ncv:
            Krylov subspace dimension, ``nev < ncv <= n``; ``ncv >= 2 nev`` is advised
        sigma:
            Shift. If it equals an eigenvalue, ``A - sigma B`` is singular and
            ``op.set_shift`` is expected to raise.
        seed:
            Seed of the random initial vector
        logger:
            Logger instance (defaults to the global logger)
        base_cls:
            Restarted solver class; receives the transformed operator, ``bop``
            and the value hook
    """

    def __init__(self,
                op          : 'ShiftSolveOp',
                bop         : MatProdOp,
                nev         : int,
                ncv         : int,
                sigma       : float,
                *,
                seed        : Optional[int]         = None,
                logger      : Optional['Logger']    = None,
                base_cls    : Type[SymEigsBase]     = SymEigsBase):

        self._sigma     = float(DEFAULT_FLOAT_TYPE(sigma))
        self._op        = SymGEigsShiftInvertOp(op, bop)
        self._solver    = base_cls(self._op, bop, nev, ncv,
                                target      = self._sigma,
                                postprocess = self._invert_ritz_values,
                                seed        = seed,
                                logger      = logger)
        op.set_shift(self._sigma)

    # ------------------------------------------------------------------------------------

    def _invert_ritz_values(self, ritz_val: NDArray) -> None:
        r'''
        $\nu \to \lambda = 1/\nu + \sigma$, in place. $\nu = 0$ gives an infinite $\lambda$.
        '''
        with np.errstate(divide='ignore'):
            ritz_val[:] = 1.0 / ritz_val + self._sigma

    # ------------------------------------------------------------------------------------

    @property
    def sigma(self) -> float:
        return self._sigma

    @property
    def nev(self) -> int:
        return self._solver.nev

    @property
    def ncv(self) -> int:
        return self._solver.ncv

    def init(self, v0: Optional[NDArray] = None) -> None:
        self._solver.init(v0)

    def compute(self,
                selection   : SortRule  = SortRule.LARGEST_MAGN,
                maxit       : int       = 1000,
                tol         : float     = 1e-10,
                sorting     : Optional[SortRule] = None) -> int:
        '''
        Runs the restarted Lanczos iteration on the transformed operator.

        ``selection`` acts on the transformed values $\\nu$; CLOSEST_TO_TARGET
        is read as LARGEST_MAGN since $|\\nu| = 1/|\\lambda - \\sigma|$.
        ``sorting`` orders the returned $\\lambda$ (target ``sigma``). When None,
        ``selection`` is used, so CLOSEST_TO_TARGET returns $\\lambda$ by
        ascending $|\\lambda - \\sigma|$.

        Returns:
            Number of converged eigenpairs
        '''
        selection = SortRule.from_any(selection)
        if sorting is None:
            sorting = default_sorting(selection)
        if selection is SortRule.CLOSEST_TO_TARGET:
            selection = SortRule.LARGEST_MAGN
        return self._solver.compute(selection, maxit, tol, sorting)

    def info(self) -> CompInfo:
        return self._solver.info()

    def num_iterations(self) -> int:
        return self._solver.num_iterations()

    def num_operations(self) -> int:
        return self._solver.num_operations()

    def eigenvalues(self) -> NDArray:
        return self._solver.eigenvalues()

    def eigenvectors(self, nvec: Optional[int] = None) -> NDArray:
        return self._solver.eigenvectors(nvec)

# ----------------------------------------------------------------------------------------
#! EOF
# ----------------------------------------------------------------------------------------
