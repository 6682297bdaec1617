from .accumulator import EMPTY, MeanVarianceAccumulator
from .error import ErrorKind, MeanVarError
from .options.config import ReduceConfig, load_config
from .reduce import accumulate, merge_all, split_shards

__all__ = [
    "EMPTY",
    "MeanVarianceAccumulator",
    "ErrorKind",
    "MeanVarError",
    "ReduceConfig",
    "load_config",
    "accumulate",
    "merge_all",
    "split_shards",
]
