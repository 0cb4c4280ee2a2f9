"""
Key/value record codec
Intermediate and output files are a stream of JSON objects
{"Key": ..., "Value": ...}, each followed by a newline, with no
surrounding container.
"""

import re
import json
from dataclasses import dataclass
from typing import IO, Iterator, Optional

from reduce_worker.errors import RecordDecodeError

WHITESPACE = re.compile(r'[ \t\n\r]*')
SURROGATE = re.compile('[\ud800-\udfff]')

# A value cut off at the end of the buffer fails no further back than this
# from the end: the longest literal ("-Infinity") or a "\uXXXX" escape.
CUTOFF_MARGIN = 9


@dataclass(frozen=True)
class KeyValue:
    """A single key/value record"""
    key: str
    value: str


def encode_record(record: KeyValue) -> str:
    """Serialize one record, newline included"""
    return json.dumps({'Key': record.key, 'Value': record.value},
                      ensure_ascii=False, separators=(',', ':')) + '\n'


class RecordEncoder:
    """Appends encoded records to a text stream"""

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def encode(self, record: KeyValue):
        self.stream.write(encode_record(record))


class RecordDecoder:
    """
    Decodes records one at a time from a text stream.

    Records are self-delimiting, so the decoder does not rely on line
    breaks; the stream is consumed in chunks and each call to decode()
    returns exactly one record.
    """

    def __init__(self, stream: IO[str], chunk_size: int = 64 * 1024):
        self.stream = stream
        self.chunk_size = chunk_size
        self._decoder = json.JSONDecoder(object_pairs_hook=_Members)
        self._buffer = ''
        self._pos = 0
        self._base = 0  # stream offset of _buffer[0]
        self._eof = False

    @property
    def offset(self) -> int:
        """Character offset of the next undecoded record"""
        return self._base + self._pos

    def decode(self) -> Optional[KeyValue]:
        """
        Decode the next record.

        Returns:
            The record, or None once the stream is cleanly exhausted

        Raises:
            RecordDecodeError: If the next value is not a valid record
        """
        while True:
            self._pos = WHITESPACE.match(self._buffer, self._pos).end()
            if self._pos == len(self._buffer):
                if self._eof:
                    return None
                self._fill()
                continue

            try:
                obj, end = self._decoder.raw_decode(self._buffer, self._pos)
            except json.JSONDecodeError as e:
                if self._eof or not self._may_be_cut_off(e):
                    raise RecordDecodeError(e.msg, self._base + e.pos) from e
                self._fill()
                continue

            if end == len(self._buffer) and not self._eof and not isinstance(obj, _Members):
                # a bare number could continue in the next chunk
                self._fill()
                continue

            start = self.offset
            self._pos = end
            return _to_record(obj, start)

    def __iter__(self) -> Iterator[KeyValue]:
        while True:
            record = self.decode()
            if record is None:
                return
            yield record

    def _may_be_cut_off(self, error: json.JSONDecodeError) -> bool:
        # An unterminated string runs to the end of the buffer; every other
        # error caused by truncation is reported close to the end.
        return (error.msg.startswith('Unterminated string')
                or error.pos >= len(self._buffer) - CUTOFF_MARGIN)

    def _fill(self):
        chunk = self.stream.read(self.chunk_size)
        if not chunk:
            self._eof = True
            return
        self._base += self._pos
        self._buffer = self._buffer[self._pos:] + chunk
        self._pos = 0


class _Members(list):
    """(name, value) pairs of a decoded JSON object, in document order"""


def _field(members: _Members, name: str, offset: int) -> str:
    # Every case-insensitive match is applied in order, so the last one wins;
    # null leaves the field unchanged
    lowered = name.lower()
    value = ''
    for member_name, member_value in members:
        if member_name.lower() != lowered or member_value is None:
            continue
        if not isinstance(member_value, str):
            raise RecordDecodeError(
                f"field {name!r} must be a string, got {type(member_value).__name__}", offset)
        value = member_value
    # unpaired \uD800-\uDFFF escapes cannot be written as UTF-8
    return SURROGATE.sub('\ufffd', value)


def _to_record(obj, offset: int) -> KeyValue:
    if obj is None:
        return KeyValue('', '')
    if not isinstance(obj, _Members):
        raise RecordDecodeError(
            f"expected a JSON object, got {type(obj).__name__}", offset)
    return KeyValue(_field(obj, 'Key', offset), _field(obj, 'Value', offset))
