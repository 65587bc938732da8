# file        :   symgeigs/algebra/utils.py

'''
Environment-driven defaults for the linear algebra layer.

The values are read once at import time and written back to the environment
so that forked workers see the same configuration.

Provides:
- PY_GLOBAL_SEED      : seed for random starting vectors (env PY_GLOBAL_SEED, default 42)
- PY_FLOATING_POINT   : working precision name (env PY_FLOATING_POINT, default float64)
- DEFAULT_FLOAT_TYPE  : numpy dtype matching PY_FLOATING_POINT
- get_rng             : seeded numpy Generator
- machine_eps         : machine epsilon of the working precision
'''

import os
from typing import Optional, Type

import numpy as np

# ---------------------------------------------------------------------
#! Environment variable names
# ---------------------------------------------------------------------

PY_GLOBAL_SEED_STR      : str               = "PY_GLOBAL_SEED"
PY_FLOATING_POINT_STR   : str               = "PY_FLOATING_POINT"

DEFAULT_SEED            : int               = 42

# ---------------------------------------------------------------------
#! SET VARIABLES
# ---------------------------------------------------------------------

PY_GLOBAL_SEED          : int               = int(os.environ.get(PY_GLOBAL_SEED_STR, DEFAULT_SEED))
os.environ[PY_GLOBAL_SEED_STR]              = str(PY_GLOBAL_SEED)

PREFER_32BIT            : bool              = os.environ.get(PY_FLOATING_POINT_STR, "64bit").lower() in ["32bit", "32", "float32", "float"]
PY_FLOATING_POINT       : str               = "float32" if PREFER_32BIT else "float64"
os.environ[PY_FLOATING_POINT_STR]           = PY_FLOATING_POINT

DEFAULT_FLOAT_TYPE      : Type              = np.float32 if PREFER_32BIT else np.float64

# ---------------------------------------------------------------------

def get_rng(seed: Optional[int] = None) -> np.random.Generator:
    '''
    Returns a numpy Generator seeded with ``seed`` or, if None, with PY_GLOBAL_SEED.
    '''
    return np.random.default_rng(PY_GLOBAL_SEED if seed is None else seed)

def machine_eps(dtype: Optional[Type] = None) -> float:
    '''
    Machine epsilon of ``dtype`` (defaults to the working precision).
    '''
    return float(np.finfo(DEFAULT_FLOAT_TYPE if dtype is None else dtype).eps)

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
