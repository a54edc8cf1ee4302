import io
import struct

import numpy as np
import pytest

from arithzip.entropy_coding.arith import ArithmeticDecoder, ArithmeticEncoder
from arithzip.entropy_coding.bitio import BitInputStream, BitOutputStream
from arithzip.entropy_coding.byte_codec import CodecConfig, decode_bytes, encode_bytes
from arithzip.errors import FormatError
from arithzip.freq_model import FrequencyTable


def _random_inputs():
    rng = np.random.default_rng(123)
    yield rng.integers(0, 256, size=3000, dtype=np.uint8).tobytes()
    yield rng.integers(0, 4, size=2500, dtype=np.uint8).tobytes()
    # heavily skewed: mostly one symbol
    yield np.where(rng.random(4000) < 0.97, 65, rng.integers(0, 256, size=4000)).astype(np.uint8).tobytes()
    yield np.minimum(rng.geometric(0.3, size=3000), 255).astype(np.uint8).tobytes()
    for _ in range(20):
        n = int(rng.integers(1, 300))
        k = int(rng.integers(1, 257))
        yield rng.integers(0, k, size=n, dtype=np.uint8).tobytes()


def test_roundtrip_random_inputs():
    for data in _random_inputs():
        assert decode_bytes(encode_bytes(data)) == data


def test_roundtrip_text():
    data = ("the quick brown fox jumps over the lazy dog. " * 40).encode("ascii")
    blob = encode_bytes(data)
    assert len(blob) < len(data)
    assert decode_bytes(blob) == data


def test_empty_input_is_header_only():
    blob = encode_bytes(b"")
    assert blob == struct.pack("<QH", 0, 0)
    assert decode_bytes(blob) == b""


def test_single_symbol_input():
    data = b"a" * 1000
    blob = encode_bytes(data)
    # header (10 + one 9-byte entry) plus a single payload word
    assert len(blob) == 10 + 9 + 4
    assert decode_bytes(blob) == data


def test_skewed_input_preserves_order():
    for data in (b"aaaaaaaab", b"baaaaaaaa", b"aaaabaaaa"):
        assert decode_bytes(encode_bytes(data)) == data


def test_encoding_is_deterministic():
    data = bytes(range(256)) * 3 + b"determinism"
    assert encode_bytes(data) == encode_bytes(data)


@pytest.mark.parametrize("config", [CodecConfig(word_bits=16), CodecConfig(word_bits=64), CodecConfig(trailer_symbols=0)])
def test_roundtrip_with_config(config):
    rng = np.random.default_rng(5)
    data = rng.integers(0, 50, size=2000, dtype=np.uint8).tobytes()
    assert decode_bytes(encode_bytes(data, config), config) == data


def test_input_beyond_precision_is_rejected():
    config = CodecConfig(word_bits=16)
    with pytest.raises(ValueError):
        encode_bytes(b"x" * (config.max_symbols + 1), config)

    blob = FrequencyTable.from_counts([97], [config.max_symbols + 1]).to_bytes()
    with pytest.raises(FormatError):
        decode_bytes(blob, config)


def test_impossible_code_value_raises_format_error():
    header = FrequencyTable.from_bytes(b"ab").to_bytes()
    with pytest.raises(FormatError):
        decode_bytes(header + b"\xff" * 8)


def test_truncated_header_raises_format_error():
    blob = encode_bytes(b"hello world")
    with pytest.raises(FormatError):
        decode_bytes(blob[:12])


class CheckedEncoder(ArithmeticEncoder):
    def renormalize(self) -> None:
        super().renormalize()
        assert self.range > self.quarter_range
        assert self.low + self.range <= self.full_range
        assert self.pending >= 0


class CheckedDecoder(ArithmeticDecoder):
    def renormalize(self) -> None:
        super().renormalize()
        assert self.range > self.quarter_range
        assert self.low + self.range <= self.full_range
        assert self.low <= self.code < self.low + self.range


def test_interval_invariant_holds_after_every_step():
    rng = np.random.default_rng(99)
    data = np.minimum(rng.geometric(0.05, size=3000), 255).astype(np.uint8).tobytes()
    table = FrequencyTable.from_bytes(data)
    symbols = table.indices_of(data).tolist()

    sink = io.BytesIO()
    enc = CheckedEncoder(BitOutputStream(sink))
    for s in symbols:
        enc.write(table.cumul, s)
    enc.finish()

    dec = CheckedDecoder(BitInputStream(io.BytesIO(sink.getvalue())))
    decoded = [dec.read(table.cumul) for _ in range(len(symbols))]
    assert decoded == symbols


def test_payload_close_to_model_entropy():
    rng = np.random.default_rng(11)
    data = np.where(rng.random(5000) < 0.9, 0, rng.integers(1, 8, size=5000)).astype(np.uint8).tobytes()
    table = FrequencyTable.from_bytes(data)
    blob = encode_bytes(data)
    payload_bits = 8 * (len(blob) - table.header_size())
    assert payload_bits <= table.ideal_bits() * 1.01 + 128
