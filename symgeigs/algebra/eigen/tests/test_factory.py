"""
Tests for the mode selector and the one-call shift-and-invert helper.
"""

import numpy as np
import pytest
import scipy.linalg
import scipy.sparse as sp

from symgeigs.algebra.eigen.factory import GEigsMode, choose_geigs_solver, default_ncv, eigsh_shift_invert
from symgeigs.algebra.eigen.shift_invert import SymGEigsShiftSolver
from symgeigs.algebra.eigen.result import CompInfo, EigenResult, EigenSolverError, EigenSolverErrorMsg
from symgeigs.algebra.eigen.sorting import SortRule
from symgeigs.algebra.operators import SymShiftInvert, IdentityOp

# ----------------------------------

def laplacian_1d(n):
    return sp.diags([-np.ones(n - 1), 2.0 * np.ones(n), -np.ones(n - 1)], [-1, 0, 1], format='csr')

# ----------------------------------

class TestModeSelection:

    def test_shift_invert_mode(self):
        A       = np.diag(np.arange(1.0, 11.0))
        solver  = choose_geigs_solver('shift-invert', SymShiftInvert(A), IdentityOp(10), nev=2, ncv=6, sigma=4.2)
        assert isinstance(solver, SymGEigsShiftSolver)
        assert solver.sigma == pytest.approx(4.2)

    @pytest.mark.parametrize("mode", [GEigsMode.CHOLESKY, GEigsMode.REGULAR_INVERSE,
                                      GEigsMode.BUCKLING, GEigsMode.CAYLEY, 'cayley'])
    def test_other_modes_not_implemented(self, mode):
        A = np.diag(np.arange(1.0, 11.0))
        with pytest.raises(EigenSolverError) as exc:
            choose_geigs_solver(mode, SymShiftInvert(A), IdentityOp(10), nev=2, ncv=6, sigma=4.2)
        assert exc.value.code is EigenSolverErrorMsg.METHOD_NOT_IMPL

    def test_unknown_mode(self):
        with pytest.raises(EigenSolverError):
            GEigsMode.from_any('lobpcg')

    @pytest.mark.parametrize("nev, n, ncv", [(1, 100, 20), (6, 100, 20), (15, 100, 31), (6, 12, 12)])
    def test_default_ncv(self, nev, n, ncv):
        assert default_ncv(nev, n) == ncv

# ----------------------------------

class TestEigshShiftInvert:

    def test_sparse_standard_problem(self):
        """Interior eigenvalues of a sparse Laplacian."""
        n       = 200
        L       = laplacian_1d(n)
        sigma   = 1.05
        result  = eigsh_shift_invert(L, k=6, sigma=sigma, sorting=SortRule.SMALLEST_ALGE)

        evals_full  = np.linalg.eigvalsh(L.toarray())
        expected    = np.sort(evals_full[np.argsort(np.abs(evals_full - sigma))[:6]])
        print(f"\nshift-invert: {result.eigenvalues}")
        print(f"reference:    {expected}")

        assert isinstance(result, EigenResult)
        assert result._fields == ('eigenvalues', 'eigenvectors', 'iterations', 'converged', 'residual_norms', 'info')
        assert result.converged
        assert result.info is CompInfo.SUCCESSFUL
        assert np.allclose(result.eigenvalues, expected, atol=1e-9)
        assert result.eigenvectors.shape == (n, 6)
        assert np.all(result.residual_norms < 1e-7)

    def test_dense_generalized_problem(self):
        n       = 50
        rng     = np.random.default_rng(5)
        M       = rng.standard_normal((n, n))
        A       = 0.5 * (M + M.T)
        B       = np.diag(rng.uniform(1.0, 2.0, n))
        sigma   = 0.1
        result  = eigsh_shift_invert(A, B, k=3, sigma=sigma, sorting='closest_to_target')

        evals_full  = scipy.linalg.eigh(A, B, eigvals_only=True)
        expected    = evals_full[np.argsort(np.abs(evals_full - sigma))[:3]]
        assert result.converged
        assert np.allclose(result.eigenvalues, expected, atol=1e-8)
        assert np.all(result.residual_norms < 1e-6)
        assert result.iterations >= 1

    def test_singular_shift(self):
        A = sp.diags(np.arange(1.0, 21.0), format='csr')
        with pytest.raises(EigenSolverError) as exc:
            eigsh_shift_invert(A, k=2, sigma=5.0)
        assert exc.value.code is EigenSolverErrorMsg.MAT_SINGULAR
