r"""
Restarted Lanczos Eigensolver

Implements a restarted Lanczos method for a self-adjoint operator OP in the
inner product induced by a symmetric positive definite operator B,
$\langle x, y \rangle_B = x^T B y$.

The solver keeps a Lanczos factorization of length m = ncv,
$$
OP\, V_m = V_m H_m + f_m e_m^T, \qquad V_m^T B V_m = I, \qquad V_m^T B f_m = 0,
$$
and restarts it by keeping the k wanted Ritz vectors (thick restart). Keeping
Ritz vectors is equivalent to implicit restarting with exact shifts: the
compressed factorization spans the same subspace that the implicitly shifted
QR sweeps would produce, without the numerical drift of the bulge chase.

Convergence of a Ritz pair $(\theta_i, V_m y_i)$ is tested with the residual
estimate available from the factorization,
$$
\| OP\, x_i - \theta_i x_i \|_B = \|f_m\|_B |e_m^T y_i| < tol \cdot \max(\epsilon^{2/3}, |\theta_i|).
$$

After the restart loop an optional post-processing hook receives mutable
access to the first ``nev`` Ritz values (e.g. to undo a spectral
transformation), after which the Ritz pairs are sorted by the caller's
sorting rule.

File        : symgeigs/algebra/eigen/lanczos.py
"""

from typing import Optional, Callable, TYPE_CHECKING
from numpy.typing import NDArray
import numpy as np
import scipy.linalg

from .result import CompInfo, EigenSolverError, EigenSolverErrorMsg
from .sorting import SortRule, sort_indices, check_sorting_rule, default_sorting
from ..utils import DEFAULT_FLOAT_TYPE, get_rng, machine_eps
from ...common.flog import get_global_logger

if TYPE_CHECKING:
    from ...common.flog import Logger
    from ..operators import MatProdOp

# ----------------------------------------------------------------------------------------

RitzHook = Callable[[NDArray], None]

# ----------------------------------------------------------------------------------------
#! Lanczos factorization
# ----------------------------------------------------------------------------------------

class LanczosFactorization:
    r"""
    Lanczos factorization $OP\, V = V H + f e_m^T$ in the B-inner product.

    Full re-orthogonalization (classical Gram-Schmidt, repeated) is applied at
    every step, so H is stored as a dense symmetric matrix. This also lets
    the factorization continue after a thick restart, where the first k rows
    of H form an arrowhead instead of a tridiagonal matrix.
    """

    def __init__(self, op: 'MatProdOp', bop: 'MatProdOp', ncv: int, rng: np.random.Generator):
        self._op        = op
        self._bop       = bop
        self._n         = op.rows()
        self._ncv       = ncv
        self._rng       = rng
        self._eps       = machine_eps()
        self._approx0   = self._eps ** (2.0 / 3.0)

        self.V          = np.zeros((self._n, ncv), dtype=DEFAULT_FLOAT_TYPE)
        self.H          = np.zeros((ncv, ncv), dtype=DEFAULT_FLOAT_TYPE)
        self.f          = np.zeros(self._n, dtype=DEFAULT_FLOAT_TYPE)
        self.f_norm     = 0.0
        self.k          = 0
        self.nmatop     = 0

    # ------------------------------------------------------------------------------------

    def _apply_op(self, x: NDArray) -> NDArray:
        self.nmatop += 1
        return np.asarray(self._op.perform_op(x), dtype=DEFAULT_FLOAT_TYPE)

    def b_norm(self, x: NDArray) -> float:
        return float(np.sqrt(max(float(x @ self._bop.perform_op(x)), 0.0)))

    def _orthogonalize(self, w: NDArray, m: int, h: Optional[NDArray] = None):
        '''
        Makes ``w`` B-orthogonal to V[:, :m]; the removed components are added to ``h``.
        Returns the new vector and its B-norm.
        '''
        Vm = self.V[:, :m]
        for _ in range(3):
            Bw      = self._bop.perform_op(w)
            w_norm  = float(np.sqrt(max(float(w @ Bw), 0.0)))
            if m == 0:
                return w, w_norm
            c       = Vm.T @ Bw
            if np.max(np.abs(c)) <= self._eps * max(w_norm, self._eps):
                return w, w_norm
            w       = w - Vm @ c
            if h is not None:
                h[:m] += c
        return w, self.b_norm(w)

    def _random_b_orthogonal(self, m: int) -> NDArray:
        '''
        New unit vector B-orthogonal to V[:, :m], used when the Krylov space becomes invariant.
        '''
        for _ in range(5):
            r           = self._rng.standard_normal(self._n).astype(DEFAULT_FLOAT_TYPE)
            r_norm0     = self.b_norm(r)
            r, r_norm   = self._orthogonalize(r, m)
            if r_norm > self._approx0 * r_norm0:
                return r / r_norm
        raise EigenSolverError(EigenSolverErrorMsg.KRYLOV_BREAKDOWN,
                f"Unable to extend an invariant Krylov subspace of dimension {m}")

    # ------------------------------------------------------------------------------------

    def initialize(self, v0: NDArray):
        '''
        Starts a factorization of length one from the residual vector ``v0``.
        '''
        v0      = np.asarray(v0, dtype=DEFAULT_FLOAT_TYPE).reshape(-1)
        if v0.shape[0] != self._n:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH,
                    f"Initial vector has length {v0.shape[0]}, expected {self._n}")
        v_norm  = self.b_norm(v0)
        if not np.isfinite(v_norm) or v_norm < self._eps:
            raise EigenSolverError(EigenSolverErrorMsg.INVALID_INPUT, "Initial residual vector cannot be zero")

        self.V[:]       = 0.0
        self.H[:]       = 0.0
        self.nmatop     = 0
        self.V[:, 0]    = v0 / v_norm
        self._extend_step(0)
        self.k          = 1

    def _extend_step(self, i: int):
        '''
        Computes column i of H from OP v_i and leaves the new residual in f.
        '''
        w           = self._apply_op(self.V[:, i])
        Bw          = self._bop.perform_op(w)
        h           = self.V[:, :i + 1].T @ Bw
        w           = w - self.V[:, :i + 1] @ h
        w, w_norm   = self._orthogonalize(w, i + 1, h)

        self.H[:i + 1, i]   = h
        self.H[i, :i]       = h[:i]
        self.f              = w
        self.f_norm         = w_norm

    def factorize_from(self, from_k: int, to_m: int):
        '''
        Extends the factorization from length ``from_k`` to ``to_m``.
        '''
        if to_m <= from_k:
            return
        h_scale = max(1.0, float(np.max(np.abs(self.H[:from_k, :from_k]), initial=0.0)))
        for i in range(from_k, to_m):
            if self.f_norm < self._approx0 * h_scale:
                # invariant subspace: restart with a fresh direction, no coupling to V
                self.V[:, i] = self._random_b_orthogonal(i)
            else:
                self.V[:, i] = self.f / self.f_norm
            self._extend_step(i)
        self.k = to_m

    def compress(self, Y: NDArray, theta: NDArray):
        '''
        Thick restart: keeps the Ritz vectors V @ Y with Ritz values ``theta``.
        The residual f is unchanged and stays B-orthogonal to the kept vectors.
        '''
        k                   = Y.shape[1]
        m                   = self.k
        self.V[:, :k]       = self.V[:, :m] @ Y
        self.V[:, k:]       = 0.0
        self.H[:]           = 0.0
        self.H[:k, :k]      = np.diag(theta)
        self.k              = k

# ----------------------------------------------------------------------------------------
#! Restarted Lanczos base solver
# ----------------------------------------------------------------------------------------

class SymEigsBase:
    r"""
    Restarted Lanczos solver for ``nev`` extremal eigenpairs of an operator OP
    that is self-adjoint in the B-inner product.

    Typical use:
        >>> solver = SymEigsBase(op, bop, nev=4, ncv=12)
        >>> solver.init()
        >>> nconv  = solver.compute(SortRule.LARGEST_MAGN, maxit=1000, tol=1e-10)
        >>> evals  = solver.eigenvalues()
        >>> evecs  = solver.eigenvectors()

    Parameters:
    -----------
        op:
            Operator exposing ``rows()``, ``cols()`` and ``perform_op(x)``
        bop:
            Operator for the inner product (B), same contract as ``op``
        nev:
            Number of requested eigenpairs, ``1 <= nev <= n - 1``
        ncv:
            Dimension of the Krylov subspace, ``nev < ncv <= n``
        target:
            Reference point for the CLOSEST_TO_TARGET rule
        postprocess:
            Callable receiving a mutable view of the first ``nev`` Ritz values
            after the restart loop, before the final sort
        seed:
            Seed of the random starting vector (defaults to PY_GLOBAL_SEED)
        logger:
            Logger instance (defaults to the global logger)
    """

    def __init__(self,
                op          : 'MatProdOp',
                bop         : 'MatProdOp',
                nev         : int,
                ncv         : int,
                *,
                target      : float                 = 0.0,
                postprocess : Optional[RitzHook]    = None,
                seed        : Optional[int]         = None,
                logger      : Optional['Logger']    = None):

        n = op.rows()
        if op.cols() != n:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH, f"Operator must be square, got {n}x{op.cols()}")
        if bop.rows() != n or bop.cols() != n:
            raise EigenSolverError(EigenSolverErrorMsg.DIM_MISMATCH,
                    f"B operator has dimension {bop.rows()}x{bop.cols()}, expected {n}x{n}")
        if nev < 1 or nev > n - 1:
            raise EigenSolverError(EigenSolverErrorMsg.INVALID_NEV, f"nev must satisfy 1 <= nev <= n - 1, n is the size of matrix (nev={nev}, n={n})")
        if ncv <= nev or ncv > n:
            raise EigenSolverError(EigenSolverErrorMsg.INVALID_NCV, f"ncv must satisfy nev < ncv <= n, n is the size of matrix (nev={nev}, ncv={ncv}, n={n})")

        self._op            = op
        self._bop           = bop
        self._n             = n
        self._nev           = int(nev)
        self._ncv           = int(ncv)
        self._target        = float(target)
        self._postprocess   = postprocess
        self._rng           = get_rng(seed)
        self._logger        = logger if logger is not None else get_global_logger()
        self._eps23         = machine_eps() ** (2.0 / 3.0)

        self._fac           = LanczosFactorization(op, bop, self._ncv, self._rng)
        self._info          = CompInfo.NOT_COMPUTED
        self._niter         = 0
        self._initialized   = False
        self._computed      = False
        self._reset_ritz()

    # ------------------------------------------------------------------------------------

    def _reset_ritz(self):
        self._ritz_val      = np.zeros(self._ncv, dtype=DEFAULT_FLOAT_TYPE)
        self._ritz_est      = np.zeros(self._ncv, dtype=DEFAULT_FLOAT_TYPE)
        self._ritz_y        = np.zeros((self._ncv, self._ncv), dtype=DEFAULT_FLOAT_TYPE)
        self._ritz_vec      = np.zeros((self._ncv, self._nev), dtype=DEFAULT_FLOAT_TYPE)
        self._ritz_conv     = np.zeros(self._nev, dtype=bool)

    # ------------------------------------------------------------------------------------
    #! Initialization
    # ------------------------------------------------------------------------------------

    def init(self, v0: Optional[NDArray] = None) -> None:
        '''
        Initializes the Krylov subspace from ``v0`` or from a seeded random vector.
        '''
        if self._computed:
            raise EigenSolverError(EigenSolverErrorMsg.ALREADY_COMPUTED,
                    "compute() has already run on this instance, create a new solver instead")
        if v0 is None:
            v0 = self._rng.standard_normal(self._n)

        try:
            self._fac.initialize(v0)
        except Exception:
            self._info = CompInfo.NUMERICAL_ISSUE
            raise

        self._reset_ritz()
        self._niter         = 0
        self._info          = CompInfo.NOT_COMPUTED
        self._initialized   = True

    # ------------------------------------------------------------------------------------
    #! Compute
    # ------------------------------------------------------------------------------------

    def compute(self,
                selection   : SortRule  = SortRule.LARGEST_MAGN,
                maxit       : int       = 1000,
                tol         : float     = 1e-10,
                sorting     : Optional[SortRule] = None) -> int:
        '''
        Runs the restart loop.

        Parameters:
        -----------
            selection:
                Which end of the spectrum of OP to pursue
            maxit:
                Maximum number of restarts
            tol:
                Relative tolerance of the Ritz residual estimate
            sorting:
                Order of the reported eigenvalues (defaults to ``selection``)

        Returns:
            Number of converged eigenpairs, at most nev
        '''
        selection   = SortRule.from_any(selection)
        sorting     = default_sorting(selection) if sorting is None else SortRule.from_any(sorting)
        sorting     = check_sorting_rule(sorting)

        if not self._initialized:
            raise EigenSolverError(EigenSolverErrorMsg.NOT_INITIALIZED, "init() must be called before compute()")
        if self._computed:
            raise EigenSolverError(EigenSolverErrorMsg.ALREADY_COMPUTED,
                    "compute() can only run once per instance, create a new solver instead")
        if maxit < 1:
            raise EigenSolverError(EigenSolverErrorMsg.INVALID_INPUT, f"maxit must be positive, got {maxit}")
        if not tol > 0:
            raise EigenSolverError(EigenSolverErrorMsg.INVALID_INPUT, f"tol must be positive, got {tol}")

        self._computed  = True
        self._info      = CompInfo.COMPUTING
        nconv           = 0
        try:
            self._fac.factorize_from(self._fac.k, self._ncv)
            self._retrieve_ritzpair(selection)

            for i in range(maxit):
                nconv = self._num_converged(tol)
                self._logger.debug(f"restart {i}: {nconv}/{self._nev} converged, ||f||_B={self._fac.f_norm:.3e}", lvl=1)
                if nconv >= self._nev:
                    break
                self._restart(self._nev_adjusted(nconv), selection)
            else:
                nconv = self._num_converged(tol)
            self._niter = i + 1

            self._finalize(sorting)
        except Exception:
            self._info = CompInfo.NUMERICAL_ISSUE
            raise

        self._info = CompInfo.SUCCESSFUL if nconv >= self._nev else CompInfo.NOT_CONVERGING
        if self._info is CompInfo.NOT_CONVERGING:
            self._logger.warning(f"Lanczos: only {nconv}/{self._nev} eigenpairs converged after {self._niter} restarts")
        else:
            self._logger.debug(f"Lanczos: {nconv} eigenpairs converged after {self._niter} restarts, {self._fac.nmatop} operations")
        return min(self._nev, nconv)

    # ------------------------------------------------------------------------------------
    #! Restart helpers
    # ------------------------------------------------------------------------------------

    def _retrieve_ritzpair(self, selection: SortRule):
        ''' Eigen-decomposes H and orders the Ritz pairs by ``selection``. '''
        m                   = self._fac.k
        H                   = 0.5 * (self._fac.H[:m, :m] + self._fac.H[:m, :m].T)
        evals, evecs        = scipy.linalg.eigh(H)
        ind                 = sort_indices(evals, selection, self._target)

        self._ritz_val[:m]  = evals[ind]
        self._ritz_est[:m]  = evecs[m - 1, ind]
        self._ritz_y        = evecs[:, ind]
        self._ritz_vec      = evecs[:, ind[:self._nev]].copy()

    def _num_converged(self, tol: float) -> int:
        thresh              = tol * np.maximum(np.abs(self._ritz_val[:self._nev]), self._eps23)
        resid               = np.abs(self._ritz_est[:self._nev]) * self._fac.f_norm
        self._ritz_conv     = resid < thresh
        return int(np.count_nonzero(self._ritz_conv))

    def _nev_adjusted(self, nconv: int) -> int:
        '''
        Number of Ritz vectors kept at a restart: nev plus a share of the converged
        ones, which speeds up convergence of the remaining pairs.
        '''
        nev_new = self._nev
        nev_new += int(np.count_nonzero(np.abs(self._ritz_est[self._nev:self._ncv]) < self._eps23))
        nev_new += min(nconv, (self._ncv - nev_new) // 2)
        if nev_new == 1 and self._ncv >= 6:
            nev_new = self._ncv // 2
        elif nev_new == 1 and self._ncv > 2:
            nev_new = 2
        return min(nev_new, self._ncv - 1)

    def _restart(self, k: int, selection: SortRule):
        self._fac.compress(self._ritz_y[:, :k], self._ritz_val[:k])
        self._fac.factorize_from(k, self._ncv)
        self._retrieve_ritzpair(selection)

    # ------------------------------------------------------------------------------------
    #! Finalization
    # ------------------------------------------------------------------------------------

    def _finalize(self, sorting: SortRule):
        '''
        Runs the post-processing hook on the first nev Ritz values, then sorts.
        '''
        if self._postprocess is not None:
            self._postprocess(self._ritz_val[:self._nev])
        self._sort_ritzpair(sorting)

    def _sort_ritzpair(self, sorting: SortRule):
        ''' Generic sort of the first nev Ritz pairs. '''
        nev                     = self._nev
        ind                     = sort_indices(self._ritz_val[:nev], sorting, self._target)
        self._ritz_val[:nev]    = self._ritz_val[:nev][ind]
        self._ritz_est[:nev]    = self._ritz_est[:nev][ind]
        self._ritz_vec          = self._ritz_vec[:, ind]
        self._ritz_conv         = self._ritz_conv[ind]

    # ------------------------------------------------------------------------------------
    #! Accessors
    # ------------------------------------------------------------------------------------

    def info(self) -> CompInfo:
        return self._info

    def num_iterations(self) -> int:
        return self._niter

    def num_operations(self) -> int:
        return self._fac.nmatop

    @property
    def nev(self) -> int:
        return self._nev

    @property
    def ncv(self) -> int:
        return self._ncv

    def eigenvalues(self) -> NDArray:
        '''
        Converged eigenvalues in the order of the sorting rule.
        '''
        return self._ritz_val[:self._nev][self._ritz_conv].copy()

    def eigenvectors(self, nvec: Optional[int] = None) -> NDArray:
        '''
        Converged B-normalized eigenvectors as columns, at most ``nvec`` of them.
        '''
        ind     = np.flatnonzero(self._ritz_conv)
        if nvec is not None:
            ind = ind[:max(0, nvec)]
        return self._fac.V[:, :self._ncv] @ self._ritz_vec[:, ind]

# ----------------------------------------------------------------------------------------
#! EOF
# ----------------------------------------------------------------------------------------
