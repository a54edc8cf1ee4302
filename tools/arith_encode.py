#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from tqdm import tqdm

from arithzip.entropy_coding.byte_codec import CodecConfig, encode_file

SUFFIX = ".az"


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Arithmetic encode file(s) with a static byte model")
    p.add_argument("--input", type=Path)
    p.add_argument("--input-list", type=Path)
    p.add_argument("--out", type=Path, required=True)
    p.add_argument("--subdir", type=str, default="")
    p.add_argument("--word-bits", type=int, default=32, choices=[16, 32, 64])
    p.add_argument("--trailer-symbols", type=int, default=8)
    p.add_argument("--dump-stats", type=Path, default=None)
    args = p.parse_args(argv)
    if bool(args.input is None) == bool(args.input_list is None):
        raise ValueError("Specify exactly one of --input or --input-list")
    return args


def main(argv=None) -> None:
    args = parse_args(argv)
    config = CodecConfig(word_bits=args.word_bits, trailer_symbols=args.trailer_symbols)

    if args.input is not None:
        out_bin = args.out
        if out_bin.suffix != SUFFIX:
            out_bin = out_bin.with_name(out_bin.name + SUFFIX)
        stats = encode_file(args.input, out_bin, config, args.dump_stats)
        print(json.dumps({"input": str(args.input), "out": str(out_bin), **stats}, indent=2))
        return

    lines = [ln.strip() for ln in args.input_list.read_text(encoding="utf-8").splitlines() if ln.strip()]
    out_dir = args.out
    out_dir.mkdir(parents=True, exist_ok=True)
    all_stats = []
    for rel in tqdm(lines, desc="encode"):
        in_path = Path(rel)
        if args.subdir:
            in_path = Path(args.subdir) / in_path
        if not in_path.is_file():
            print(f"[WARN] skipping missing input: {in_path}", file=sys.stderr)
            continue
        out_bin = out_dir / (rel + SUFFIX)
        stats = encode_file(in_path, out_bin, config, None)
        all_stats.append({"input": str(in_path), "out": str(out_bin), **stats})
    if args.dump_stats is not None:
        args.dump_stats.parent.mkdir(parents=True, exist_ok=True)
        args.dump_stats.write_text(json.dumps(all_stats, indent=2), encoding="utf-8")


if __name__ == "__main__":
    main()
