"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import json
import tempfile
import shutil

EXAMPLES_DIR = os.path.join(os.path.dirname(__file__), '..', 'examples')


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def write_shard(temp_dir):
    """Write an intermediate file for (job, map task, reduce task)

    Records are (key, value) tuples; raw strings are written verbatim.
    """
    def _write(job_name, map_task, reduce_task, records):
        path = os.path.join(temp_dir, f'mrtmp.{job_name}-{map_task}-{reduce_task}')
        with open(path, 'w', encoding='utf-8') as f:
            for record in records:
                if isinstance(record, str):
                    f.write(record)
                else:
                    key, value = record
                    f.write(json.dumps({'Key': key, 'Value': value}) + '\n')
        return path
    return _write


@pytest.fixture
def read_output():
    """Read an output file back as a list of (key, value) tuples"""
    def _read(path):
        with open(path, 'r', encoding='utf-8') as f:
            return [(r['Key'], r['Value']) for r in map(json.loads, f)]
    return _read


@pytest.fixture
def wordcount_job_file():
    """Path to word count example job file"""
    return os.path.join(EXAMPLES_DIR, 'wordcount.py')


@pytest.fixture
def inverted_index_job_file():
    """Path to inverted index example job file"""
    return os.path.join(EXAMPLES_DIR, 'inverted_index.py')
