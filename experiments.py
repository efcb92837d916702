"""
Huffman compression experiments over printable ASCII text

Runs the full pipeline (count -> build -> codes -> encode -> decode) on
synthetic datasets drawn from the byte range 32..127, repeated over several
runs, and compares the encoded size with the fixed 8-bit baseline.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per dataset)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts, unless --no_plots)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size_kb 64 --max_kb 1024
  python experiments.py --outdir results --generators zipf96,english_like --no_plots
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import huffman as huff
import report


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def shannon_entropy(table: huff.FrequencyTable) -> float:
    # bits per symbol, lower bound for any prefix code
    total = table.total
    if total == 0:
        return 0.0
    h = 0.0
    for _, count in table.items():
        p = count / total
        h -= p * math.log2(p)
    return h


# Synthetic dataset generators (all bytes in the alphabet)

ALPHABET = list(range(huff.ALPHABET_START, huff.ALPHABET_END))

def _sample_cdf(rng: random.Random, symbols: List[int], weights: List[float], size: int) -> bytes:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = bytearray()
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        out.append(symbols[lo])
    return bytes(out)

def gen_uniform(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.choice(ALPHABET) for _ in range(size))

def gen_zipf_like(size: int, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(len(ALPHABET))]
    return _sample_cdf(rng, ALPHABET, weights, size)

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    other_symbols = [i for i in ALPHABET if i != dominant]
    out = bytearray()
    for _ in range(size):
        if rng.random() < dom_frac:
            out.append(dominant)
        else:
            out.append(rng.choice(other_symbols))
    return bytes(out)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        ".,"
    )
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch in ".,":
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample_cdf(rng, [ord(c) for c in chars], weights, size)

def gen_single_symbol(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes([rng.choice(ALPHABET)]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform96": lambda size, seed: gen_uniform(size, seed=seed),
    "zipf96": lambda size, seed: gen_zipf_like(size, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int

    count_ms: float
    build_tree_ms: float
    codes_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    encoded_bits: int
    baseline_bits: int
    compression_ratio: float
    avg_code_length: float
    entropy_bits: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    t0 = now_ns()
    ft = huff.count_frequencies(data)
    t1 = now_ns()
    tree = huff.build_huffman_tree(ft)
    t2 = now_ns()
    code_map = huff.generate_huffman_codes(tree)
    t3 = now_ns()
    bits = huff.huffman_encode(data, code_map)
    t4 = now_ns()
    decoded = huff.huffman_decode(bits, tree)
    t5 = now_ns()

    baseline = len(data) * 8
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=ft.distinct,
        count_ms=ns_to_ms(t1 - t0),
        build_tree_ms=ns_to_ms(t2 - t1),
        codes_ms=ns_to_ms(t3 - t2),
        encode_ms=ns_to_ms(t4 - t3),
        decode_ms=ns_to_ms(t5 - t4),
        total_ms=ns_to_ms(t5 - t0),
        encoded_bits=len(bits),
        baseline_bits=baseline,
        compression_ratio=len(bits) / max(1, baseline),
        avg_code_length=report.average_code_length(ft, code_map),
        entropy_bits=shannon_entropy(ft),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes)
        key_to.setdefault(key, []).append(r)

    averaged = ["compression_ratio", "avg_code_length", "entropy_bits", "encode_ms", "decode_ms",
                "build_tree_ms", "total_ms"]
    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    for name in averaged:
        summary_fields += [f"{name}_mean", f"{name}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for name in averaged:
                m, s = mean_stdev([getattr(x, name) for x in items])
                row[f"{name}_mean"] = m
                row[f"{name}_stdev"] = s
            w.writerow(row)


# Plotting

def plot_distribution(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    plt.figure()
    plt.plot(x, [mean_for(d, "avg_code_length") for d in datasets], marker="o", label="huffman")
    plt.plot(x, [mean_for(d, "entropy_bits") for d in datasets], marker="x", label="entropy")
    plt.axhline(8.0, linestyle="--", color="gray", label="fixed 8-bit")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_code_length.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "total_ms") for d in datasets], marker="o")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Total Time (ms) (count + build + encode + decode)")
    plt.title("Experiment 1: Total Runtime by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_total_time.png", dpi=200)
    plt.close()


def plot_size_scaling(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    for field, ylabel, fname in (
        ("encode_ms", "Encode Time (ms)", "exp2_encode_time.png"),
        ("decode_ms", "Decode Time (ms)", "exp2_decode_time.png"),
        ("compression_ratio", "Encoded Bits / Fixed-Width Bits", "exp2_compression_ratio.png"),
    ):
        plt.figure()
        for dist in distributions:
            dist_rows = [r for r in exp_rows if r.dataset_name == dist]
            sizes = sorted(set(r.file_size_bytes for r in dist_rows))
            y = [statistics.mean(getattr(r, field) for r in dist_rows if r.file_size_bytes == s) for s in sizes]
            plt.plot(sizes, y, marker="o", label=dist)
        plt.xlabel("Input Size (bytes)")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 2: {ylabel} vs Size")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / fname, dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_experiments(generators: List[str], runs: int, seed: int, size_kb: int,
                    min_kb: int, max_kb: int, exp1: bool = True, exp2: bool = True) -> List[MetricRow]:
    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if exp1:
        fixed_size = max(1, size_kb) * 1024
        for gen_name in generators:
            for run_id in range(1, runs + 1):
                row = run_one(generate_dataset(gen_name, fixed_size, seed + run_id))
                row.exp_name = "exp1_distribution"
                row.dataset_name = gen_name
                row.run_id = run_id
                rows.append(row)

    # Experiment 2: size scaling (powers of 2)
    if exp2:
        sizes: List[int] = []
        s = max(1, min_kb) * 1024
        while s <= max(1, max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in generators:
            for size_b in sizes:
                for run_id in range(1, runs + 1):
                    row = run_one(generate_dataset(gen_name, size_b, seed + 10_000 + size_b + run_id))
                    row.exp_name = "exp2_size_scaling"
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)

    return rows


def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--generators", type=str, default="uniform96,zipf96,repetitive90,english_like",
                    help="Comma-separated dataset generator names")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    ap.add_argument("--size_kb", type=int, default=256, help="Experiment 1 fixed input size in KB")
    ap.add_argument("--min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--max_kb", type=int, default=1024, help="Experiment 2 max size in KB (power-of-two growth)")

    args = ap.parse_args(argv)

    gen_names = parse_csv_list(args.generators)
    unknown = [g for g in gen_names if g not in GENERATOR_REGISTRY]
    if unknown:
        ap.error(f"unknown generator(s): {', '.join(unknown)}")

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows = run_experiments(gen_names, args.runs, args.seed, args.size_kb, args.min_kb, args.max_kb,
                           exp1=not args.no_exp1, exp2=not args.no_exp2)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_distribution(rows, outdir)
        plot_size_scaling(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
