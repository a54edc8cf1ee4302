from __future__ import annotations

import io
import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Union

from arithzip.entropy_coding.arith import ArithmeticDecoder, ArithmeticEncoder
from arithzip.entropy_coding.bitio import BitInputStream, BitOutputStream, word_struct
from arithzip.errors import FormatError
from arithzip.freq_model import FrequencyTable

DECODE_CHUNK = 1 << 16


@dataclass
class CodecConfig:
    word_bits: int = 32
    trailer_symbols: int = 8

    def __post_init__(self) -> None:
        word_struct(self.word_bits)
        if self.trailer_symbols < 0:
            raise ValueError("trailer_symbols must be >= 0")

    @property
    def max_symbols(self) -> int:
        # every count maps to a non-empty interval while total <= range
        return 1 << (self.word_bits - 2)


@dataclass
class CodingStats:
    input_bytes: int
    header_bytes: int
    payload_bytes: int
    ideal_bits: float

    @property
    def actual_bits_payload(self) -> int:
        return 8 * self.payload_bytes

    @property
    def actual_bits_with_header(self) -> int:
        return 8 * (self.payload_bytes + self.header_bytes)

    def as_dict(self) -> Dict[str, object]:
        stats: Dict[str, object] = asdict(self)
        stats["actual_bits_payload"] = self.actual_bits_payload
        stats["actual_bits_with_header"] = self.actual_bits_with_header
        overhead = self.actual_bits_payload - self.ideal_bits
        stats["overhead_bits"] = overhead
        stats["overhead_pct"] = overhead / self.ideal_bits * 100.0 if self.ideal_bits > 0 else 0.0
        stats["bits_per_byte"] = (
            self.actual_bits_with_header / self.input_bytes if self.input_bytes > 0 else 0.0
        )
        return stats


def encode_stream(source: BinaryIO, sink: BinaryIO, config: Optional[CodecConfig] = None) -> CodingStats:
    """Compress everything readable from ``source`` into ``sink``.

    The input is buffered once so the frequency pass and the coding pass see
    the same bytes.
    """
    config = config or CodecConfig()
    data = source.read()
    if len(data) > config.max_symbols:
        raise ValueError(
            f"Input of {len(data)} bytes exceeds the {config.max_symbols}-symbol limit "
            f"of {config.word_bits}-bit coding"
        )

    table = FrequencyTable.from_bytes(data)
    header_bytes = table.write(sink)
    if table.total == 0:
        return CodingStats(0, header_bytes, 0, 0.0)

    bitout = BitOutputStream(sink, config.word_bits)
    enc = ArithmeticEncoder(bitout)
    cumul = table.cumul
    for idx in table.indices_of(data).tolist():
        enc.write(cumul, idx)
    # end padding with the symbol whose range starts at zero
    for _ in range(config.trailer_symbols):
        enc.write(cumul, 0)
    enc.finish()

    payload_bytes = bitout.num_words_written * (config.word_bits // 8)
    return CodingStats(len(data), header_bytes, payload_bytes, table.ideal_bits())


def decode_stream(source: BinaryIO, sink: BinaryIO, config: Optional[CodecConfig] = None) -> int:
    """Decompress one encoded stream from ``source`` into ``sink``.

    Returns the number of bytes written.
    """
    config = config or CodecConfig()
    table = FrequencyTable.read(source)
    total = table.total
    if total > config.max_symbols:
        raise FormatError(
            f"Header declares {total} symbols, more than {config.word_bits}-bit coding supports"
        )
    if total == 0:
        return 0

    dec = ArithmeticDecoder(BitInputStream(source, config.word_bits))
    cumul = table.cumul
    symbols = table.symbols.tolist()
    out = bytearray()
    for _ in range(total):
        out.append(symbols[dec.read(cumul)])
        if len(out) >= DECODE_CHUNK:
            sink.write(bytes(out))
            out.clear()
    if out:
        sink.write(bytes(out))
    return total


def encode_bytes(data: bytes, config: Optional[CodecConfig] = None) -> bytes:
    sink = io.BytesIO()
    encode_stream(io.BytesIO(data), sink, config)
    return sink.getvalue()


def decode_bytes(blob: bytes, config: Optional[CodecConfig] = None) -> bytes:
    sink = io.BytesIO()
    decode_stream(io.BytesIO(blob), sink, config)
    return sink.getvalue()


def encode_file(
    in_path: Path,
    out_path: Path,
    config: Optional[CodecConfig] = None,
    dump_stats: Optional[Path] = None,
) -> Dict[str, object]:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with in_path.open("rb") as src, out_path.open("wb") as dst:
        stats = encode_stream(src, dst, config).as_dict()

    if dump_stats is not None:
        dump_stats.parent.mkdir(parents=True, exist_ok=True)
        dump_stats.write_text(json.dumps(stats, indent=2), encoding="utf-8")
    return stats


def decode_file(in_path: Path, out_path: Path, config: Optional[CodecConfig] = None) -> int:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with in_path.open("rb") as src, out_path.open("wb") as dst:
        return decode_stream(src, dst, config)


def read_header(path_or_source: Union[Path, BinaryIO]) -> FrequencyTable:
    if isinstance(path_or_source, Path):
        with path_or_source.open("rb") as f:
            return FrequencyTable.read(f)
    return FrequencyTable.read(path_or_source)
