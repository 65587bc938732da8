r"""
Sort rules for Ritz values.

A sort rule is interpreted twice by the shift-invert solver: once by the
restarted Lanczos engine to decide which Ritz pairs of the *transformed*
operator are kept between restarts (the selection rule), and once after the
restart loop to order the reported eigenvalues of the *original* problem
(the sorting rule).

Rules:
    - LARGEST_MAGN      : descending $|\theta|$
    - LARGEST_ALGE      : descending $\theta$
    - SMALLEST_MAGN     : ascending $|\theta|$
    - SMALLEST_ALGE     : ascending $\theta$
    - BOTH_ENDS         : largest, smallest, second largest, second smallest, ...
                          (selection only)
    - CLOSEST_TO_TARGET : ascending $|\theta - \tau|$ for a target $\tau$
"""

import numpy as np
from enum import Enum, auto, unique
from numpy.typing import NDArray

from .result import EigenSolverError, EigenSolverErrorMsg

# ----------------------------------------------------------------------------------------

@unique
class SortRule(Enum):
    """
    Selection / sorting criterion for Ritz values.
    """
    LARGEST_MAGN        = auto()
    LARGEST_ALGE        = auto()
    SMALLEST_MAGN       = auto()
    SMALLEST_ALGE       = auto()
    BOTH_ENDS           = auto()
    CLOSEST_TO_TARGET   = auto()

    @classmethod
    def from_any(cls, rule) -> 'SortRule':
        '''
        Accepts a SortRule, its name ('largest_magn') or the ARPACK code ('LM', 'SA', ...).
        '''
        if isinstance(rule, cls):
            return rule
        if isinstance(rule, str):
            key = rule.strip().upper()
            if key in _ARPACK_CODES:
                return _ARPACK_CODES[key]
            if key in cls.__members__:
                return cls[key]
        raise EigenSolverError(EigenSolverErrorMsg.INVALID_SORT_RULE, f"Unknown sort rule: {rule!r}")

_ARPACK_CODES = {
    'LM' : SortRule.LARGEST_MAGN,
    'LA' : SortRule.LARGEST_ALGE,
    'SM' : SortRule.SMALLEST_MAGN,
    'SA' : SortRule.SMALLEST_ALGE,
    'BE' : SortRule.BOTH_ENDS,
}

# rules accepted for the final ordering of reported eigenvalues
SORTING_RULES = frozenset({
    SortRule.LARGEST_MAGN,
    SortRule.LARGEST_ALGE,
    SortRule.SMALLEST_MAGN,
    SortRule.SMALLEST_ALGE,
    SortRule.CLOSEST_TO_TARGET,
})

# ----------------------------------------------------------------------------------------

def sort_indices(values: NDArray, rule: SortRule, target: float = 0.0) -> NDArray:
    """
    Permutation that orders ``values`` according to ``rule``.

    Ties keep their original relative order (stable sort).

    Parameters:
    -----------
        values:
            Real Ritz values
        rule:
            Sort rule
        target:
            Reference point for CLOSEST_TO_TARGET

    Returns:
        Integer index array of the same length as ``values``
    """
    values = np.asarray(values)

    if rule is SortRule.LARGEST_MAGN:
        return np.argsort(-np.abs(values), kind='stable')
    if rule is SortRule.LARGEST_ALGE:
        return np.argsort(-values, kind='stable')
    if rule is SortRule.SMALLEST_MAGN:
        return np.argsort(np.abs(values), kind='stable')
    if rule is SortRule.SMALLEST_ALGE:
        return np.argsort(values, kind='stable')
    if rule is SortRule.CLOSEST_TO_TARGET:
        return np.argsort(np.abs(values - target), kind='stable')
    if rule is SortRule.BOTH_ENDS:
        desc        = np.argsort(-values, kind='stable')
        n           = len(desc)
        ind         = np.empty_like(desc)
        ind[0::2]   = desc[:(n + 1) // 2]
        ind[1::2]   = desc[::-1][:n // 2]
        return ind
    raise EigenSolverError(EigenSolverErrorMsg.INVALID_SORT_RULE, f"Unsupported sort rule: {rule!r}")

def check_sorting_rule(rule: SortRule) -> SortRule:
    ''' Validates a rule used for the final ordering. '''
    if rule not in SORTING_RULES:
        raise EigenSolverError(EigenSolverErrorMsg.INVALID_SORT_RULE,
                    f"{rule.name} can only be used as a selection rule, not for sorting the results")
    return rule

def default_sorting(selection: SortRule) -> SortRule:
    '''
    Final ordering used when only a selection rule is given: the selection
    itself, or LARGEST_ALGE for the selection-only BOTH_ENDS.
    '''
    return selection if selection in SORTING_RULES else SortRule.LARGEST_ALGE

# ----------------------------------------------------------------------------------------
#! EOF
# ----------------------------------------------------------------------------------------
