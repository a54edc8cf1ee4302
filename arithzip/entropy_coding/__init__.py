from arithzip.entropy_coding.arith import ArithmeticDecoder, ArithmeticEncoder
from arithzip.entropy_coding.bitio import BitInputStream, BitOutputStream
from arithzip.entropy_coding.byte_codec import CodecConfig, CodingStats, decode_bytes, encode_bytes

__all__ = [
    "ArithmeticEncoder",
    "ArithmeticDecoder",
    "BitInputStream",
    "BitOutputStream",
    "CodecConfig",
    "CodingStats",
    "decode_bytes",
    "encode_bytes",
]
