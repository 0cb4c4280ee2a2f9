"""
Correctness validation tests
Tests that a reduce task produces correct results for known inputs
"""

import os
import random
import pytest
from collections import Counter

from reduce_worker.reduce_executor import do_reduce
from reduce_worker.shard_reader import make_locator


def join_with_comma(key, values):
    return ','.join(values)


def count_values(key, values):
    return str(len(values))


@pytest.mark.integration
class TestKnownScenarios:
    """Tests for small inputs with known outputs"""

    def test_values_joined_across_shards(self, temp_dir, write_shard, read_output):
        """Test that shard values are merged in shard order"""
        write_shard('job', 0, 0, [('a', '1'), ('b', '2')])
        write_shard('job', 1, 0, [('a', '3'), ('c', '4')])
        out_file = os.path.join(temp_dir, 'out')

        do_reduce('job', 0, out_file, 2, join_with_comma, locator=make_locator(temp_dir))

        assert read_output(out_file) == [('a', '1,3'), ('b', '2'), ('c', '4')]

    def test_single_occurrence_key_gets_one_value(self, temp_dir, write_shard):
        """Test that a key seen once is reduced with a one-element list"""
        write_shard('job', 0, 0, [('solo', 'v'), ('pair', '1'), ('pair', '2')])
        seen = {}

        def recording_reduce(key, values):
            seen[key] = list(values)
            return ''

        do_reduce('job', 0, os.path.join(temp_dir, 'out'), 1, recording_reduce,
                  locator=make_locator(temp_dir))

        assert seen['solo'] == ['v']

    def test_count_of_values(self, temp_dir, write_shard, read_output):
        """Test that duplicates count toward the value list"""
        write_shard('job', 0, 0, [('x', '_'), ('x', '_')])
        write_shard('job', 1, 0, [('x', '_')])
        out_file = os.path.join(temp_dir, 'out')

        do_reduce('job', 0, out_file, 2, count_values, locator=make_locator(temp_dir))

        assert read_output(out_file) == [('x', '3')]


@pytest.mark.integration
class TestRandomizedProperties:
    """Tests for properties that must hold for any input"""

    N_MAP = 5

    @pytest.fixture
    def shards(self, write_shard):
        rng = random.Random(1234)
        keys = [''.join(rng.choice('abcXYZé ') for _ in range(rng.randint(0, 4)))
                for _ in range(60)]
        shards = []
        for map_task in range(self.N_MAP):
            records = [(rng.choice(keys), str(rng.randint(0, 99)))
                       for _ in range(rng.randint(0, 200))]
            write_shard('prop', map_task, 3, records)
            shards.append(records)
        return shards

    def _reduce(self, temp_dir, reduce_fn, name='out'):
        out_file = os.path.join(temp_dir, name)
        do_reduce('prop', 3, out_file, self.N_MAP, reduce_fn, locator=make_locator(temp_dir))
        return out_file

    def test_output_keys_are_exactly_input_keys(self, temp_dir, shards, read_output):
        """Test that no key is lost or invented"""
        out = read_output(self._reduce(temp_dir, count_values))

        input_keys = {key for records in shards for key, _ in records}
        assert {key for key, _ in out} == input_keys

    def test_output_keys_strictly_ascending(self, temp_dir, shards, read_output):
        """Test sorted, duplicate-free output"""
        keys = [key for key, _ in read_output(self._reduce(temp_dir, count_values))]
        encoded = [key.encode('utf-8') for key in keys]

        assert all(a < b for a, b in zip(encoded, encoded[1:]))

    def test_value_lists_in_shard_then_file_order(self, temp_dir, shards):
        """Test the value list for every key"""
        seen = {}

        def recording_reduce(key, values):
            seen[key] = list(values)
            return ''

        self._reduce(temp_dir, recording_reduce)

        expected = {}
        for records in shards:
            for key, value in records:
                expected.setdefault(key, []).append(value)
        assert seen == expected

    def test_reduce_called_once_per_key(self, temp_dir, shards):
        calls = Counter()

        def counting_reduce(key, values):
            calls[key] += 1
            return ''

        self._reduce(temp_dir, counting_reduce)

        assert set(calls.values()) <= {1}
        assert len(calls) == len({key for records in shards for key, _ in records})

    def test_rerun_is_byte_identical(self, temp_dir, shards):
        """Test that the same inputs give the same bytes"""
        first = self._reduce(temp_dir, join_with_comma, name='first')
        second = self._reduce(temp_dir, join_with_comma, name='second')
        with open(first, 'rb') as f:
            first_bytes = f.read()

        self._reduce(temp_dir, join_with_comma, name='first')

        with open(first, 'rb') as f1, open(second, 'rb') as f2:
            assert f1.read() == first_bytes == f2.read()
