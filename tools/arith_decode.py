#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from pathlib import Path

from arithzip.entropy_coding.byte_codec import CodecConfig, decode_file, read_header


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Arithmetic decode a compressed file")
    p.add_argument("--bin", type=Path, required=True)
    p.add_argument("--out", type=Path, default=None)
    p.add_argument("--verify-against", type=Path, default=None)
    p.add_argument("--word-bits", type=int, default=32, choices=[16, 32, 64])
    p.add_argument("--show-table", action="store_true")
    args = p.parse_args(argv)
    if args.out is None and not args.show_table:
        raise ValueError("Specify --out and/or --show-table")
    return args


def main(argv=None) -> None:
    args = parse_args(argv)

    if args.show_table:
        table = read_header(args.bin)
        rows = [{"symbol": s, "low": lo, "high": hi} for s, lo, hi in table.entries()]
        print(json.dumps({"total_symbols": table.total, "table": rows}, indent=2))

    if args.out is None:
        return

    n = decode_file(args.bin, args.out, CodecConfig(word_bits=args.word_bits))

    if args.verify_against is not None:
        if args.out.read_bytes() != args.verify_against.read_bytes():
            raise RuntimeError(f"Decoded output of {n} bytes does not match {args.verify_against}")


if __name__ == "__main__":
    main()
