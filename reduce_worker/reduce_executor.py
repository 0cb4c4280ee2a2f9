#!/usr/bin/env python3
"""
Reduce Task Executor
Reads the intermediate files of one reduce partition, groups values by key,
applies the reduce function once per key in sorted key order, and writes
the final output
"""

import os
import time
import logging
import tempfile
import contextlib
from dataclasses import dataclass
from typing import Callable, List, Optional

import psutil

from reduce_worker.config import ReduceConfig
from reduce_worker.errors import ErrorKind, UnavailableOutputError, classify_error
from reduce_worker.function_loader import FunctionLoader
from reduce_worker.grouper import KeyGroups, group_records
from reduce_worker.records import KeyValue, RecordEncoder
from reduce_worker.shard_reader import (
    Locator,
    ShardReadStats,
    make_locator,
    read_partition,
    reduce_name,
)

logger = logging.getLogger(__name__)

ReduceFunction = Callable[[str, List[str]], str]


@dataclass
class ReduceStats:
    """Counters for one reduce task"""
    shards_read: int = 0
    shards_truncated: int = 0
    records_read: int = 0
    unique_keys: int = 0
    records_written: int = 0


@dataclass
class ReduceResult:
    """Outcome of ReduceExecutor.execute()"""
    success: bool
    execution_time_ms: int
    error_message: str = ''
    error_kind: Optional[ErrorKind] = None
    error: Optional[Exception] = None
    stats: Optional[ReduceStats] = None


def as_reduce_function(strategy) -> ReduceFunction:
    """Accept a plain callable or an object with a reduce(key, values) method"""
    if callable(strategy):
        return strategy
    method = getattr(strategy, 'reduce', None)
    if callable(method):
        return method
    raise TypeError(f"{strategy!r} is not a reduce function")


def get_memory_usage() -> int:
    """Current resident memory of this process in bytes"""
    return psutil.Process().memory_info().rss


def do_reduce(job_name: str, reduce_task: int, out_file: str, n_map: int,
              reduce_fn, locator: Locator = reduce_name, strict: bool = False,
              atomic: bool = False) -> ReduceStats:
    """
    Run one reduce task.

    Every intermediate file for the partition is read and grouped before
    the output file is opened, so an unreadable input never leaves output
    behind. Exceptions raised by reduce_fn are not caught.

    Args:
        job_name: Name of the whole MapReduce job
        reduce_task: Partition index of this reduce task
        out_file: Path of the output file, truncated if it exists
        n_map: Number of map tasks that ran
        reduce_fn: (key, values) -> str, or an object with such a reduce method
        locator: (job_name, map_task, reduce_task) -> intermediate file path
        strict: Raise MalformedInputError instead of ending a shard early
        atomic: Write to a temporary file and rename it into place

    Returns:
        ReduceStats for the task

    Raises:
        UnavailableInputError: If an intermediate file cannot be opened
        MalformedInputError: On a malformed record when strict is set
        UnavailableOutputError: If the output file cannot be written
    """
    reduce_fn = as_reduce_function(reduce_fn)
    read_stats = ShardReadStats()

    records = read_partition(job_name, reduce_task, n_map, locator=locator,
                             strict=strict, stats=read_stats)
    groups = group_records(records)
    logger.info(f"Reduce task {reduce_task}: Grouped {len(groups)} unique keys "
                f"from {read_stats.records_read} records in {read_stats.shards_read} files")
    logger.debug(f"Reduce task {reduce_task}: memory usage {get_memory_usage()} bytes")

    keys = groups.sorted_keys()
    written = _write_output(out_file, keys, groups, reduce_fn, atomic)
    logger.info(f"Reduce task {reduce_task}: Wrote {written} records to {out_file}")

    return ReduceStats(
        shards_read=read_stats.shards_read,
        shards_truncated=read_stats.shards_truncated,
        records_read=read_stats.records_read,
        unique_keys=len(groups),
        records_written=written,
    )


def _write_output(out_file: str, keys: List[str], groups: KeyGroups,
                  reduce_fn: ReduceFunction, atomic: bool) -> int:
    target = out_file
    if atomic:
        directory = os.path.dirname(os.path.abspath(out_file))
        try:
            fd, target = tempfile.mkstemp(
                prefix=f".{os.path.basename(out_file)}.", suffix='.tmp', dir=directory)
            os.close(fd)
        except OSError as e:
            raise UnavailableOutputError(out_file, e) from e

    try:
        try:
            f = open(target, 'w', encoding='utf-8')
        except OSError as e:
            raise UnavailableOutputError(out_file, e) from e

        written = 0
        with f:
            encoder = RecordEncoder(f)
            for key in keys:
                reduced = reduce_fn(key, groups[key])
                if not isinstance(reduced, str):
                    raise TypeError(f"reduce function returned {type(reduced).__name__} "
                                    f"for key {key!r}, expected str")
                try:
                    encoder.encode(KeyValue(key, reduced))
                except OSError as e:
                    raise UnavailableOutputError(out_file, e) from e
                written += 1
            try:
                f.flush()
            except OSError as e:
                raise UnavailableOutputError(out_file, e) from e

        if atomic:
            try:
                os.replace(target, out_file)
            except OSError as e:
                raise UnavailableOutputError(out_file, e) from e
    except BaseException:
        if atomic:
            with contextlib.suppress(OSError):
                os.remove(target)
        raise

    return written


class ReduceExecutor:
    """Executes a single reduce task and reports the outcome as a ReduceResult"""

    def __init__(self, job_name: str, reduce_task: int, n_map: int, output_path: str,
                 reduce_fn=None, job_file: Optional[str] = None,
                 config: Optional[ReduceConfig] = None,
                 locator: Optional[Locator] = None):
        """
        Args:
            job_name: Name of the whole MapReduce job
            reduce_task: Partition index this task reduces
            n_map: Number of map tasks that ran
            output_path: File the reduced records are written to
            reduce_fn: Reduce function; loaded from job_file when omitted
            job_file: Path to a user's Python file defining reduce_function
            config: Worker settings, read from the environment when omitted
            locator: Overrides the intermediate file naming
        """
        if n_map < 0:
            raise ValueError(f"n_map must be >= 0, got {n_map}")
        if reduce_fn is None and job_file is None:
            raise ValueError("Either reduce_fn or job_file is required")

        self.job_name = job_name
        self.reduce_task = reduce_task
        self.n_map = n_map
        self.output_path = output_path
        self.reduce_fn = reduce_fn
        self.config = config or ReduceConfig.from_env()
        self.locator = locator or make_locator(self.config.intermediate_dir)
        self.loader = FunctionLoader(job_file) if job_file else None

    def execute(self) -> ReduceResult:
        """
        Execute the reduce task

        Returns:
            ReduceResult; on failure error_kind says which stage failed
        """
        start_time = time.time()

        try:
            reduce_fn = self.reduce_fn
            if reduce_fn is None:
                logger.info(f"Reduce task {self.reduce_task}: Loading reduce function")
                reduce_fn = self.loader.get_reduce_function()

            stats = do_reduce(
                self.job_name,
                self.reduce_task,
                self.output_path,
                self.n_map,
                reduce_fn,
                locator=self.locator,
                strict=self.config.strict_decode,
                atomic=self.config.atomic_output,
            )
        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            kind = classify_error(e)
            logger.error(f"Reduce task failed - Job: {self.job_name}, "
                         f"Task: {self.reduce_task}, Kind: {kind.value}. Error: {e}")
            return ReduceResult(
                success=False,
                execution_time_ms=execution_time,
                error_message=str(e),
                error_kind=kind,
                error=e,
            )

        execution_time = int((time.time() - start_time) * 1000)
        logger.info(f"Reduce task {self.reduce_task}: Completed in {execution_time}ms")
        return ReduceResult(success=True, execution_time_ms=execution_time, stats=stats)
