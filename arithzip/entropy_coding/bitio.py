from __future__ import annotations

import struct
from typing import BinaryIO

from arithzip.errors import FormatError

# Payload words share the byte order of the header integers.
_WORD_FORMATS = {16: "<H", 32: "<I", 64: "<Q"}


def word_struct(word_bits: int) -> struct.Struct:
    try:
        return struct.Struct(_WORD_FORMATS[word_bits])
    except KeyError:
        raise ValueError(f"Unsupported word width: {word_bits}") from None


class BitOutputStream:
    """Packs bits MSB-first into fixed-width words written to ``sink``."""

    def __init__(self, sink: BinaryIO, word_bits: int = 32):
        self.sink = sink
        self.word_bits = word_bits
        self._word = word_struct(word_bits)
        self.current_word = 0
        self.bit_index = word_bits - 1
        self.num_bits_written = 0
        self.num_words_written = 0

    def write(self, bit: int) -> None:
        if bit & 1:
            self.current_word |= 1 << self.bit_index
        self.num_bits_written += 1
        if self.bit_index == 0:
            self._emit()
        self.bit_index = (self.bit_index - 1) % self.word_bits

    def flush(self) -> None:
        # partial word, zero padded
        if self.bit_index < self.word_bits - 1:
            self._emit()
            self.bit_index = self.word_bits - 1

    def _emit(self) -> None:
        self.sink.write(self._word.pack(self.current_word))
        self.current_word = 0
        self.num_words_written += 1


class BitInputStream:
    """Reads words from ``source`` and hands out their bits MSB-first.

    Past the end of the source every bit reads as 0. A trailing fragment
    shorter than one word means the payload was cut and is rejected.
    """

    def __init__(self, source: BinaryIO, word_bits: int = 32):
        self.source = source
        self.word_bits = word_bits
        self._word = word_struct(word_bits)
        self.current_word = 0
        self.bit_index = word_bits - 1
        self.exhausted = False

    def read(self) -> int:
        if self.bit_index == self.word_bits - 1:
            if self.exhausted:
                return 0
            chunk = self.source.read(self._word.size)
            if len(chunk) == 0:
                self.exhausted = True
                return 0
            if len(chunk) != self._word.size:
                raise FormatError(
                    f"Truncated payload: got {len(chunk)} of {self._word.size} bytes in final word"
                )
            (self.current_word,) = self._word.unpack(chunk)
        bit = (self.current_word >> self.bit_index) & 1
        self.bit_index = (self.bit_index - 1) % self.word_bits
        return bit
