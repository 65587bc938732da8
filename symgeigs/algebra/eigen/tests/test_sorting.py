"""
Tests for the sort rules used for selection and final ordering.
"""

import numpy as np
import pytest

from symgeigs.algebra.eigen.sorting import SortRule, sort_indices, check_sorting_rule, default_sorting, SORTING_RULES
from symgeigs.algebra.eigen.result import EigenSolverError, EigenSolverErrorMsg

VALUES = np.array([3.0, -5.0, 0.5, -1.0, 2.0])

class TestSortIndices:

    @pytest.mark.parametrize("rule, expected", [
        (SortRule.LARGEST_MAGN,  [-5.0, 3.0, 2.0, -1.0, 0.5]),
        (SortRule.LARGEST_ALGE,  [3.0, 2.0, 0.5, -1.0, -5.0]),
        (SortRule.SMALLEST_MAGN, [0.5, -1.0, 2.0, 3.0, -5.0]),
        (SortRule.SMALLEST_ALGE, [-5.0, -1.0, 0.5, 2.0, 3.0]),
        (SortRule.BOTH_ENDS,     [3.0, -5.0, 2.0, -1.0, 0.5]),
    ])
    def test_rules(self, rule, expected):
        assert np.array_equal(VALUES[sort_indices(VALUES, rule)], expected)

    def test_closest_to_target(self):
        ordered = VALUES[sort_indices(VALUES, SortRule.CLOSEST_TO_TARGET, target=1.8)]
        assert np.array_equal(ordered, [2.0, 3.0, 0.5, -1.0, -5.0])

    def test_ties_are_stable(self):
        values = np.array([-2.0, 1.0, 2.0, -1.0])
        assert list(sort_indices(values, SortRule.LARGEST_MAGN)) == [0, 2, 1, 3]

    def test_both_ends_even_length(self):
        values = np.array([1.0, 2.0, 3.0, 4.0])
        assert np.array_equal(values[sort_indices(values, SortRule.BOTH_ENDS)], [4.0, 1.0, 3.0, 2.0])

class TestSortRuleParsing:

    @pytest.mark.parametrize("given, rule", [
        ('LM', SortRule.LARGEST_MAGN),
        ('sa', SortRule.SMALLEST_ALGE),
        ('BE', SortRule.BOTH_ENDS),
        ('closest_to_target', SortRule.CLOSEST_TO_TARGET),
        (SortRule.LARGEST_ALGE, SortRule.LARGEST_ALGE),
    ])
    def test_from_any(self, given, rule):
        assert SortRule.from_any(given) is rule

    @pytest.mark.parametrize("given", ['XX', 3, None])
    def test_unknown_rule(self, given):
        with pytest.raises(EigenSolverError) as exc:
            SortRule.from_any(given)
        assert exc.value.code is EigenSolverErrorMsg.INVALID_SORT_RULE

    def test_both_ends_only_selects(self):
        assert SortRule.BOTH_ENDS not in SORTING_RULES
        with pytest.raises(EigenSolverError):
            check_sorting_rule(SortRule.BOTH_ENDS)
        assert check_sorting_rule(SortRule.SMALLEST_MAGN) is SortRule.SMALLEST_MAGN

    @pytest.mark.parametrize("selection, sorting", [
        (SortRule.CLOSEST_TO_TARGET, SortRule.CLOSEST_TO_TARGET),
        (SortRule.SMALLEST_ALGE, SortRule.SMALLEST_ALGE),
        (SortRule.BOTH_ENDS, SortRule.LARGEST_ALGE),
    ])
    def test_default_sorting(self, selection, sorting):
        assert default_sorting(selection) is sorting

    def test_error_format(self):
        err = EigenSolverError(EigenSolverErrorMsg.INVALID_SORT_RULE, "bad rule")
        assert str(err) == "[EigenSolverError INVALID_SORT_RULE (204)]: bad rule"
        assert EigenSolverError(EigenSolverErrorMsg.MAT_SINGULAR).message == "Mat Singular"
