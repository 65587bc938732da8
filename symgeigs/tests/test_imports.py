"""
Package-level checks: lazy exports, logger and environment defaults.
"""

import logging
import numpy as np
import pytest

import symgeigs
from symgeigs.common import flog
from symgeigs.algebra import utils

class TestLazyImports:

    @pytest.mark.parametrize("name", [
        'SymGEigsShiftSolver', 'SymEigsBase', 'SortRule', 'CompInfo', 'EigenResult',
        'EigenSolverError', 'GEigsMode', 'choose_geigs_solver', 'eigsh_shift_invert',
        'SymShiftInvert', 'DenseSymMatProd', 'SparseSymMatProd', 'get_global_logger',
    ])
    def test_top_level_exports(self, name):
        assert getattr(symgeigs, name) is not None
        assert name in dir(symgeigs)

    def test_subpackage_exports(self):
        from symgeigs.algebra import eigen
        assert eigen.SymGEigsShiftSolver is symgeigs.SymGEigsShiftSolver
        assert symgeigs.algebra.IdentityOp(3).rows() == 3

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            symgeigs.does_not_exist

    def test_version(self):
        assert isinstance(symgeigs.__version__, str)

class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)

class TestLogger:

    def test_global_logger_is_shared(self):
        assert flog.get_global_logger() is flog.get_global_logger()

    def test_levels_and_indentation(self):
        logger  = flog.Logger(name="symgeigs.test", lvl='debug')
        handler = RecordingHandler()
        logger.logger.addHandler(handler)
        try:
            logger.debug("restart", lvl=1)
            logger.warning("not converged", color=None)
            logger.info("hidden", verbose=False)
        finally:
            logger.logger.removeHandler(handler)

        assert [r.levelno for r in handler.records] == [logging.DEBUG, logging.WARNING]
        assert handler.records[0].getMessage() == "\t->restart"

    def test_solver_warns_when_not_converging(self):
        from symgeigs.algebra.eigen.lanczos import SymEigsBase
        from symgeigs.algebra.operators import DenseSymMatProd, IdentityOp

        logger  = flog.Logger(name="symgeigs.test.solver", lvl='debug')
        handler = RecordingHandler()
        logger.logger.addHandler(handler)
        n       = 300
        A       = np.diag(np.linspace(0.0, 1.0, n) ** 2)
        try:
            solver = SymEigsBase(DenseSymMatProd(A), IdentityOp(n), nev=4, ncv=9, logger=logger)
            solver.init()
            solver.compute('SA', maxit=1, tol=1e-14)
        finally:
            logger.logger.removeHandler(handler)
        assert any(r.levelno == logging.WARNING for r in handler.records)

class TestEnvironmentDefaults:

    def test_seeded_rng(self):
        a = utils.get_rng().standard_normal(4)
        b = utils.get_rng(utils.PY_GLOBAL_SEED).standard_normal(4)
        assert np.array_equal(a, b)

    def test_machine_eps(self):
        assert utils.machine_eps(np.float64) == np.finfo(np.float64).eps
        assert utils.PY_FLOATING_POINT in ("float32", "float64")
