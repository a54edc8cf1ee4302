from arithzip.entropy_coding.byte_codec import (
    CodecConfig,
    decode_bytes,
    decode_file,
    decode_stream,
    encode_bytes,
    encode_file,
    encode_stream,
)
from arithzip.errors import FormatError
from arithzip.freq_model import FrequencyTable

__all__ = [
    "CodecConfig",
    "FormatError",
    "FrequencyTable",
    "decode_bytes",
    "decode_file",
    "decode_stream",
    "encode_bytes",
    "encode_file",
    "encode_stream",
]
