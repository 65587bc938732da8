"""
Tests for the operator adapters and the shifted solve.
"""

import numpy as np
import pytest
import scipy.linalg
import scipy.sparse as sp

from symgeigs.algebra.operators import (MatProdOp, DenseSymMatProd, SparseSymMatProd, FunctionOp,
                                        IdentityOp, SymShiftInvert, as_mat_prod)
from symgeigs.algebra.eigen.result import EigenSolverError, EigenSolverErrorMsg

# ----------------------------------

def laplacian_1d(n):
    return sp.diags([-np.ones(n - 1), 2.0 * np.ones(n), -np.ones(n - 1)], [-1, 0, 1], format='csr')

# ----------------------------------

class TestMatProd:

    def test_dense_product(self):
        A   = laplacian_1d(6).toarray()
        op  = DenseSymMatProd(A)
        x   = np.arange(6.0)
        assert op.rows() == op.cols() == op.n == 6
        assert np.allclose(op.perform_op(x), A @ x)
        out = np.zeros(6)
        assert op.perform_op(x, out=out) is out
        assert np.allclose(out, A @ x)

    def test_dense_rejects_nonsymmetric(self):
        with pytest.raises(EigenSolverError) as exc:
            DenseSymMatProd(np.array([[1.0, 2.0], [0.0, 1.0]]))
        assert exc.value.code is EigenSolverErrorMsg.INVALID_INPUT

    def test_dense_rejects_rectangular(self):
        with pytest.raises(EigenSolverError) as exc:
            DenseSymMatProd(np.ones((3, 4)))
        assert exc.value.code is EigenSolverErrorMsg.DIM_MISMATCH

    def test_sparse_product(self):
        L   = laplacian_1d(10)
        op  = SparseSymMatProd(L)
        x   = np.linspace(0.0, 1.0, 10)
        assert np.allclose(op.perform_op(x), L @ x)

    def test_function_and_identity(self):
        op  = FunctionOp(lambda x: 2.0 * x, 4)
        x   = np.ones(4)
        assert np.allclose(op.perform_op(x), 2.0)
        idn = IdentityOp(4)
        y   = idn.perform_op(x)
        assert y is not x and np.array_equal(y, x)
        with pytest.raises(EigenSolverError):
            FunctionOp(lambda x: x, 0)

    def test_as_mat_prod(self):
        assert isinstance(as_mat_prod(np.eye(3)), DenseSymMatProd)
        assert isinstance(as_mat_prod(sp.eye(3)), SparseSymMatProd)
        op = IdentityOp(3)
        assert as_mat_prod(op) is op
        assert isinstance(op, MatProdOp)

# ----------------------------------

class TestSymShiftInvert:

    @pytest.mark.parametrize("sparse", [False, True])
    def test_solve(self, sparse):
        n       = 12
        A       = laplacian_1d(n)
        B       = sp.diags(np.linspace(1.0, 2.0, n))
        sigma   = 0.37
        op      = SymShiftInvert(A if sparse else A.toarray(), B if sparse else B.toarray())
        op.set_shift(sigma)

        x       = np.random.default_rng(0).standard_normal(n)
        ref     = np.linalg.solve(A.toarray() - sigma * B.toarray(), x)
        assert op.sigma == pytest.approx(sigma)
        assert np.allclose(op.perform_op(x), ref)

    def test_identity_b(self):
        A       = np.diag([1.0, 2.0, 4.0])
        op      = SymShiftInvert(A)
        op.set_shift(3.0)
        assert np.allclose(op.perform_op(np.ones(3)), [-0.5, -1.0, 1.0])

    def test_perform_before_shift(self):
        op = SymShiftInvert(np.eye(3))
        assert op.sigma is None
        with pytest.raises(EigenSolverError) as exc:
            op.perform_op(np.ones(3))
        assert exc.value.code is EigenSolverErrorMsg.SHIFT_NOT_SET

    @pytest.mark.parametrize("sparse", [False, True])
    def test_singular_shift(self, sparse):
        A   = np.diag([1.0, 2.0, 3.0])
        op  = SymShiftInvert(sp.csr_matrix(A) if sparse else A)
        with pytest.raises(EigenSolverError) as exc:
            op.set_shift(2.0)
        assert exc.value.code is EigenSolverErrorMsg.MAT_SINGULAR

    def test_numerically_singular_shift(self):
        """A rotated spectrum has no exact zero pivot at a rounded eigenvalue."""
        n       = 12
        Q, _    = np.linalg.qr(np.random.default_rng(4).standard_normal((n, n)))
        A       = Q @ np.diag(np.arange(1.0, n + 1.0)) @ Q.T
        A       = 0.5 * (A + A.T)
        B       = np.diag(np.linspace(1.0, 2.0, n))
        for Bmat, evals in ((None, np.linalg.eigvalsh(A)), (B, scipy.linalg.eigh(A, B, eigvals_only=True))):
            op = SymShiftInvert(A, Bmat)
            with pytest.raises(EigenSolverError) as exc:
                op.set_shift(evals[4])
            assert exc.value.code is EigenSolverErrorMsg.MAT_SINGULAR
            assert op.sigma is None

        op      = SymShiftInvert(A)
        op.set_shift(np.linalg.eigvalsh(A)[4] + 1e-3)
        assert np.all(np.isfinite(op.perform_op(np.ones(n))))

    def test_dimension_mismatch(self):
        with pytest.raises(EigenSolverError) as exc:
            SymShiftInvert(np.eye(3), np.eye(4))
        assert exc.value.code is EigenSolverErrorMsg.DIM_MISMATCH
