"""
Command line front-end for the Huffman encoder

How to run:
  python huffman_cli.py frequencies input.txt
  python huffman_cli.py codes input.txt
  python huffman_cli.py encode input.txt --stats
  python huffman_cli.py decode input.txt 0110100...
  python huffman_cli.py decode input.txt --bits-file encoded.txt
  python huffman_cli.py roundtrip input.txt

The tree used by decode is rebuilt from the same input file that produced the
bitstream, so both commands must be given the same file.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import huffman as huff
import report


def read_source(path) -> bytes:
    """
    Read the whole file as bytes. Read failures are raised as ResourceReadError, never returned as short input
    """
    p = Path(path)
    try:
        return p.read_bytes()
    except OSError as e:
        raise huff.ResourceReadError(p, e.strerror or str(e)) from e


def build_from_file(path) -> Tuple[bytes, huff.FrequencyTable, huff.HuffmanTree, dict]:
    data = read_source(path)
    ft = huff.count_frequencies(data)
    tree = huff.build_huffman_tree(ft)
    code_map = huff.generate_huffman_codes(tree)
    return data, ft, tree, code_map


# Commands

def cmd_frequencies(args) -> int:
    ft = huff.count_frequencies(read_source(args.file))
    print(report.format_frequencies(ft), end="")
    if ft.ignored:
        print(f"({ft.ignored} bytes outside the alphabet ignored)", file=sys.stderr)
    return 0


def cmd_codes(args) -> int:
    _, _, _, code_map = build_from_file(args.file)
    print(report.format_codes(code_map), end="")
    return 0


def cmd_encode(args) -> int:
    data, ft, _, code_map = build_from_file(args.file)
    bits = huff.huffman_encode(data, code_map)
    print(bits)
    if args.stats:
        print(report.compression_summary(len(data), len(bits)))
        print(f"average code length: {report.average_code_length(ft, code_map):.3f} bits/symbol")
    return 0


def cmd_decode(args) -> int:
    if args.bits is None and args.bits_file is None:
        args.parser.error("give BITS or --bits-file")
    _, _, tree, _ = build_from_file(args.file)
    if args.bits_file is not None:
        bits = read_source(args.bits_file).decode("ascii", errors="replace").strip()
    else:
        bits = args.bits
    decoded = huff.huffman_decode(bits, tree)
    print(decoded.decode("ascii"))
    return 0


def cmd_roundtrip(args) -> int:
    data, _, tree, code_map = build_from_file(args.file)
    bits = huff.huffman_encode(data, code_map)
    decoded = huff.huffman_decode(bits, tree)
    print(report.compression_summary(len(data), len(bits)))
    if decoded != data:
        print("round trip FAILED: decoded output differs from input", file=sys.stderr)
        return 1
    print("round trip ok")
    return 0


# Main

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman coding for printable ASCII text")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("frequencies", help="List symbol frequencies of a file")
    p.add_argument("file", type=str)
    p.set_defaults(func=cmd_frequencies)

    p = sub.add_parser("codes", help="List the Huffman code of every symbol in a file")
    p.add_argument("file", type=str)
    p.set_defaults(func=cmd_codes)

    p = sub.add_parser("encode", help="Encode a file as a string of 0s and 1s")
    p.add_argument("file", type=str)
    p.add_argument("--stats", action="store_true", help="Also print size against the 8-bit baseline")
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("decode", help="Decode a bitstring with the tree built from a file")
    p.add_argument("file", type=str, help="File the tree is built from")
    source = p.add_mutually_exclusive_group()
    source.add_argument("bits", type=str, nargs="?", default=None, help="Bitstring to decode")
    source.add_argument("--bits-file", type=str, default=None, help="Read the bitstring from this file")
    p.set_defaults(func=cmd_decode, parser=p)

    p = sub.add_parser("roundtrip", help="Encode then decode a file and check the result")
    p.add_argument("file", type=str)
    p.set_defaults(func=cmd_roundtrip)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except huff.HuffmanError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
