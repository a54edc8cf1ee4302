from __future__ import annotations

import numpy as np

from arithzip.entropy_coding.bitio import BitInputStream, BitOutputStream
from arithzip.errors import FormatError


class IntervalCoder:
    """Interval state shared by the encoder and the decoder.

    The interval is ``[low, low + range)`` inside ``[0, 2**state_size)``.
    After :meth:`renormalize` returns, ``range > quarter_range`` and
    ``low + range <= full_range``. Subclasses decide what each rescaling case
    does to the bit stream.
    """

    def __init__(self, state_size: int = 32):
        self.state_size = state_size
        self.full_range = 1 << state_size
        self.half_range = self.full_range >> 1
        self.quarter_range = self.half_range >> 1
        self.low = 0
        self.range = self.half_range

    def narrow(self, cumul: np.ndarray, symbol: int) -> None:
        total = int(cumul[-1])
        if total <= 0:
            raise ValueError("CDF total must be positive")
        symlow = int(cumul[symbol])
        symhigh = int(cumul[symbol + 1])
        lo = (self.range * symlow) // total
        hi = (self.range * symhigh) // total
        if hi <= lo:
            raise FormatError(f"Symbol {symbol} maps to an empty interval (total={total})")
        self.low += lo
        self.range = hi - lo

    def renormalize(self) -> None:
        while self.range <= self.quarter_range:
            if self.low + self.range <= self.half_range:
                self._lower_half()
            elif self.half_range <= self.low:
                self._upper_half()
                self.low -= self.half_range
            else:
                self._straddle()
                self.low -= self.quarter_range
            self.low <<= 1
            self.range <<= 1
            self._shifted()

    def _lower_half(self) -> None:
        pass

    def _upper_half(self) -> None:
        pass

    def _straddle(self) -> None:
        pass

    def _shifted(self) -> None:
        pass


class ArithmeticEncoder(IntervalCoder):
    def __init__(self, bitout: BitOutputStream):
        super().__init__(bitout.word_bits)
        self.bitout = bitout
        self.pending = 0

    def write(self, cumul: np.ndarray, symbol: int) -> None:
        self.narrow(cumul, symbol)
        self.renormalize()

    def _lower_half(self) -> None:
        self._output_plus_follow(0)

    def _upper_half(self) -> None:
        self._output_plus_follow(1)

    def _straddle(self) -> None:
        self.pending += 1

    def _output_plus_follow(self, bit: int) -> None:
        self.bitout.write(bit)
        for _ in range(self.pending):
            self.bitout.write(bit ^ 1)
        self.pending = 0

    def finish(self) -> None:
        # Smallest multiple of quarter_range inside the interval; it exists
        # because range > quarter_range. Its two top bits pin it down and the
        # zeros the decoder reads past the end supply the rest.
        value = -(-self.low // self.quarter_range) * self.quarter_range
        self._output_plus_follow(value >> (self.state_size - 1))
        self.bitout.write((value >> (self.state_size - 2)) & 1)
        self.bitout.flush()


class ArithmeticDecoder(IntervalCoder):
    def __init__(self, bitin: BitInputStream):
        super().__init__(bitin.word_bits)
        self.bitin = bitin
        self.code = 0
        for _ in range(self.state_size):
            self.code = (self.code << 1) | self.bitin.read()

    def read(self, cumul: np.ndarray) -> int:
        total = int(cumul[-1])
        if total <= 0:
            raise ValueError("CDF total must be positive")
        value = ((self.code - self.low + 1) * total - 1) // self.range
        if value < 0 or value >= total:
            raise FormatError(f"Decoded cumulative value {value} outside [0, {total})")
        symbol = int(np.searchsorted(cumul, value, side="right") - 1)
        if symbol < 0 or symbol + 1 >= len(cumul):
            raise FormatError("Decoded symbol out of range")

        self.narrow(cumul, symbol)
        self.renormalize()
        return symbol

    def _upper_half(self) -> None:
        self.code -= self.half_range

    def _straddle(self) -> None:
        self.code -= self.quarter_range

    def _shifted(self) -> None:
        self.code = (self.code << 1) | self.bitin.read()
