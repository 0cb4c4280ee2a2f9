"""
Reduce-side merge for one MapReduce partition
"""

from reduce_worker.errors import (
    ErrorKind,
    MalformedInputError,
    RecordDecodeError,
    ReduceTaskError,
    UnavailableInputError,
    UnavailableOutputError,
)
from reduce_worker.records import KeyValue
from reduce_worker.reduce_executor import ReduceExecutor, ReduceResult, ReduceStats, do_reduce
from reduce_worker.shard_reader import reduce_name

__all__ = [
    'ErrorKind',
    'KeyValue',
    'MalformedInputError',
    'RecordDecodeError',
    'ReduceExecutor',
    'ReduceResult',
    'ReduceStats',
    'ReduceTaskError',
    'UnavailableInputError',
    'UnavailableOutputError',
    'do_reduce',
    'reduce_name',
]
