"""
Intermediate shard reading
Resolves the intermediate file each map task produced for a reduce task
and streams its records in map-task order.
"""

import os
import logging
from typing import Callable, Iterator, Optional

from reduce_worker.errors import (
    MalformedInputError,
    RecordDecodeError,
    UnavailableInputError,
)
from reduce_worker.records import KeyValue, RecordDecoder

logger = logging.getLogger(__name__)

Locator = Callable[[str, int, int], str]


def reduce_name(job_name: str, map_task: int, reduce_task: int,
                intermediate_dir: Optional[str] = None) -> str:
    """Name of the intermediate file map task `map_task` wrote for `reduce_task`"""
    filename = f"mrtmp.{job_name}-{map_task}-{reduce_task}"
    if intermediate_dir:
        return os.path.join(intermediate_dir, filename)
    return filename


def make_locator(intermediate_dir: Optional[str]) -> Locator:
    """Bind reduce_name to a directory"""
    def locate(job_name: str, map_task: int, reduce_task: int) -> str:
        return reduce_name(job_name, map_task, reduce_task, intermediate_dir)
    return locate


class ShardReadStats:
    """Counters collected while reading shards"""

    def __init__(self):
        self.shards_read = 0
        self.shards_truncated = 0
        self.records_read = 0


def read_shard(path: str, strict: bool = False,
               stats: Optional[ShardReadStats] = None) -> Iterator[KeyValue]:
    """
    Stream the records of one intermediate file.

    A malformed record ends the shard unless `strict` is set, in which
    case it is reported as MalformedInputError.

    Raises:
        UnavailableInputError: If the file cannot be opened
        MalformedInputError: On a malformed record in strict mode
    """
    try:
        # invalid UTF-8 becomes U+FFFD, which is a decode error outside a string
        f = open(path, 'r', encoding='utf-8', errors='replace')
    except OSError as e:
        raise UnavailableInputError(path, e) from e

    with f:
        decoder = RecordDecoder(f)
        while True:
            try:
                record = decoder.decode()
            except RecordDecodeError as e:
                if strict:
                    raise MalformedInputError(path, e) from e
                logger.warning(f"Stopped reading {path} at malformed record: {e}")
                if stats is not None:
                    stats.shards_truncated += 1
                break

            if record is None:
                break
            if stats is not None:
                stats.records_read += 1
            yield record

    if stats is not None:
        stats.shards_read += 1


def read_partition(job_name: str, reduce_task: int, n_map: int,
                   locator: Locator = reduce_name, strict: bool = False,
                   stats: Optional[ShardReadStats] = None) -> Iterator[KeyValue]:
    """
    Stream every record of a reduce partition, shard by shard.

    Args:
        job_name: Name of the whole MapReduce job
        reduce_task: Index of the partition being reduced
        n_map: Number of map tasks that ran, i.e. shards to read
        locator: (job_name, map_task, reduce_task) -> intermediate file path
        strict: Raise on malformed records instead of ending the shard
        stats: Optional counters to update

    Yields:
        KeyValue records in map-task order, then file order
    """
    if n_map < 0:
        raise ValueError(f"n_map must be >= 0, got {n_map}")
    return _read_shards(job_name, reduce_task, n_map, locator, strict, stats)


def _read_shards(job_name, reduce_task, n_map, locator, strict, stats):
    for map_task in range(n_map):
        path = locator(job_name, map_task, reduce_task)
        logger.debug(f"Reduce task {reduce_task}: reading {path}")
        yield from read_shard(path, strict=strict, stats=stats)
