#!/usr/bin/env python3
from __future__ import annotations

import argparse
import bz2
import csv
import json
import lzma
import zlib
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np
from tqdm import tqdm

from arithzip.entropy_coding.byte_codec import CodecConfig, decode_bytes, encode_bytes

CODECS = ("arith", "zlib", "bz2", "lzma")


def compress_bytes(data: bytes, codec: str, level: int = 9, config: Optional[CodecConfig] = None) -> bytes:
    if codec == "arith":
        blob = encode_bytes(data, config)
        if decode_bytes(blob, config) != data:
            raise RuntimeError("arith round-trip mismatch")
        return blob
    if codec == "zlib":
        return zlib.compress(data, level=level)
    if codec == "bz2":
        return bz2.compress(data, compresslevel=max(1, min(9, level)))
    if codec == "lzma":
        # preset 0..9 (9 is strongest)
        return lzma.compress(data, preset=max(0, min(9, level)))
    raise ValueError(f"Unknown codec: {codec}")


def iter_files(root: Path, pattern: str) -> Iterable[Path]:
    for p in sorted(root.rglob(pattern)):
        if p.is_file():
            yield p


def bench(paths: List[Path], codecs: List[str], level: int, config: CodecConfig) -> List[Dict[str, object]]:
    rows: List[Dict[str, object]] = []
    for path in tqdm(paths, desc="bench"):
        data = path.read_bytes()
        for codec in codecs:
            out = compress_bytes(data, codec, level, config)
            rows.append({
                "path": str(path),
                "codec": codec,
                "bytes_in": len(data),
                "bytes_out": len(out),
                "bpb": (8.0 * len(out) / len(data)) if data else 0.0,
            })
    return rows


def main(argv=None) -> None:
    ap = argparse.ArgumentParser("Compare arithmetic coding against general purpose codecs")
    ap.add_argument("--root", type=Path, required=True)
    ap.add_argument("--pattern", default="*")
    ap.add_argument("--out", type=Path, required=True, help="Output CSV path")
    ap.add_argument("--codecs", default=",".join(CODECS), help="Comma-separated: " + ",".join(CODECS))
    ap.add_argument("--level", type=int, default=9)
    ap.add_argument("--word-bits", type=int, default=32, choices=[16, 32, 64])
    args = ap.parse_args(argv)

    codecs = [c.strip() for c in args.codecs.split(",") if c.strip()]
    for c in codecs:
        if c not in CODECS:
            raise ValueError(f"Unknown codec: {c}")

    rows = bench(list(iter_files(args.root, args.pattern)), codecs, args.level, CodecConfig(word_bits=args.word_bits))

    args.out.parent.mkdir(parents=True, exist_ok=True)
    with args.out.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["path", "codec", "bytes_in", "bytes_out", "bpb"])
        writer.writeheader()
        writer.writerows(rows)

    summary = {}
    for codec in codecs:
        bpb = np.array([r["bpb"] for r in rows if r["codec"] == codec and r["bytes_in"]], dtype=np.float64)
        summary[codec] = {
            "files": int(bpb.size),
            "bpb_mean": float(bpb.mean()) if bpb.size else 0.0,
            "bpb_p50": float(np.percentile(bpb, 50)) if bpb.size else 0.0,
        }
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
