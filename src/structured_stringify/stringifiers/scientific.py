"""
Optional scientific library support
"""

# Optional imports for scientific libraries
try:
    import numpy as np

    HAS_NUMPY = True
except ImportError:
    np = None
    HAS_NUMPY = False

try:
    import pandas as pd

    HAS_PANDAS = True
except ImportError:
    pd = None
    HAS_PANDAS = False


def is_numpy_array(obj) -> bool:
    return HAS_NUMPY and isinstance(obj, np.ndarray)


def is_pandas_dataframe(obj) -> bool:
    return HAS_PANDAS and isinstance(obj, pd.DataFrame)
