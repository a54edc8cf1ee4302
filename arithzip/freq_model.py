"""Static byte frequency model and its header serialization.

Header layout (little-endian):

- total_symbols  : u64
- alphabet_count : u16
- alphabet_count x (symbol : u8, count : u64)

Only symbols and counts are stored; cumulative bounds are rebuilt on load by
accumulating the counts in file order, so the decoder sees the same CDF as the
encoder.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, List, Sequence, Tuple

import numpy as np

from arithzip.errors import FormatError

HEADER_PREFIX = struct.Struct("<QH")
ENTRY_DTYPE = np.dtype([("symbol", "u1"), ("count", "<u8")])
MAX_ALPHABET = 256
MAX_TOTAL = (1 << 64) - 1


@dataclass(eq=False)
class FrequencyTable:
    symbols: np.ndarray
    counts: np.ndarray
    cumul: np.ndarray = field(init=False)
    _index: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.symbols = np.asarray(self.symbols, dtype=np.uint8)
        self.counts = np.asarray(self.counts, dtype=np.uint64)
        n = int(self.symbols.shape[0])
        self.cumul = np.zeros((n + 1,), dtype=np.uint64)
        self.cumul[1:] = np.cumsum(self.counts, dtype=np.uint64)
        self._index = np.full((MAX_ALPHABET,), -1, dtype=np.int64)
        self._index[self.symbols] = np.arange(n, dtype=np.int64)

    @classmethod
    def from_bytes(cls, data: bytes) -> "FrequencyTable":
        """Count every byte of ``data`` and order the alphabet by descending count.

        Ties keep the order in which the symbols first appear in ``data``.
        """
        arr = np.frombuffer(data, dtype=np.uint8)
        if arr.size == 0:
            return cls.from_counts([], [])
        counts = np.bincount(arr, minlength=MAX_ALPHABET)
        present, first_seen = np.unique(arr, return_index=True)
        present_counts = counts[present].astype(np.int64)
        order = np.lexsort((first_seen, -present_counts))
        return cls.from_counts(present[order].tolist(), present_counts[order].tolist())

    @classmethod
    def from_counts(cls, symbols: Sequence[int], counts: Sequence[int]) -> "FrequencyTable":
        syms = [int(s) for s in symbols]
        cnts = [int(c) for c in counts]
        if len(syms) != len(cnts):
            raise FormatError("symbols and counts differ in length")
        if len(syms) > MAX_ALPHABET:
            raise FormatError(f"Alphabet of {len(syms)} symbols exceeds {MAX_ALPHABET}")
        if any(s < 0 or s >= MAX_ALPHABET for s in syms):
            raise FormatError("Symbol outside byte range")
        if len(set(syms)) != len(syms):
            raise FormatError("Duplicate symbol in frequency table")
        if any(c <= 0 for c in cnts):
            raise FormatError("Non-positive symbol count in frequency table")
        if sum(cnts) > MAX_TOTAL:
            raise FormatError("Symbol counts overflow 64 bits")
        return cls(np.array(syms, dtype=np.uint8), np.array(cnts, dtype=np.uint64))

    @property
    def total(self) -> int:
        return int(self.cumul[-1])

    @property
    def alphabet_size(self) -> int:
        return int(self.symbols.shape[0])

    def index_of(self, symbol: int) -> int:
        idx = int(self._index[int(symbol)])
        if idx < 0:
            raise ValueError(f"Symbol {symbol} is not in the alphabet")
        return idx

    def indices_of(self, data: bytes) -> np.ndarray:
        """Map every byte of ``data`` to its position in the table."""
        idx = self._index[np.frombuffer(data, dtype=np.uint8)]
        if np.any(idx < 0):
            raise ValueError("Input contains symbols outside the alphabet")
        return idx

    def range_of(self, symbol: int) -> Tuple[int, int]:
        idx = self.index_of(symbol)
        return int(self.cumul[idx]), int(self.cumul[idx + 1])

    def entries(self) -> List[Tuple[int, int, int]]:
        lows = self.cumul[:-1].tolist()
        highs = self.cumul[1:].tolist()
        return list(zip(self.symbols.tolist(), lows, highs))

    def ideal_bits(self) -> float:
        """Cost in bits of the whole input under this static model."""
        if self.total == 0:
            return 0.0
        c = self.counts.astype(np.float64)
        return float(np.sum(c * np.log2(float(self.total) / c)))

    def header_size(self) -> int:
        return HEADER_PREFIX.size + self.alphabet_size * ENTRY_DTYPE.itemsize

    def to_bytes(self) -> bytes:
        entries = np.empty((self.alphabet_size,), dtype=ENTRY_DTYPE)
        entries["symbol"] = self.symbols
        entries["count"] = self.counts
        return HEADER_PREFIX.pack(self.total, self.alphabet_size) + entries.tobytes()

    def write(self, sink: BinaryIO) -> int:
        blob = self.to_bytes()
        sink.write(blob)
        return len(blob)

    @classmethod
    def read(cls, source: BinaryIO) -> "FrequencyTable":
        prefix = source.read(HEADER_PREFIX.size)
        if len(prefix) != HEADER_PREFIX.size:
            raise FormatError(f"Truncated header: {len(prefix)} of {HEADER_PREFIX.size} bytes")
        total, n = HEADER_PREFIX.unpack(prefix)
        if n > MAX_ALPHABET:
            raise FormatError(f"Alphabet count {n} exceeds {MAX_ALPHABET}")

        blob = source.read(n * ENTRY_DTYPE.itemsize)
        if len(blob) != n * ENTRY_DTYPE.itemsize:
            raise FormatError(
                f"Header declares {n} symbols but only {len(blob) // ENTRY_DTYPE.itemsize} are present"
            )
        entries = np.frombuffer(blob, dtype=ENTRY_DTYPE)
        table = cls.from_counts(entries["symbol"].tolist(), entries["count"].tolist())
        if table.total != total:
            raise FormatError(f"Symbol counts sum to {table.total}, header declares {total}")
        return table
