#!/usr/bin/env python3
"""
Benchmark exorg tangling on generated documents of growing size.

Two modes are timed for every document size:
- in-process: parse + select + route + write through the Python API
- cli: a fresh `python -m exorg tangle` subprocess (includes startup)

Every generated document is a worst case for the dependency sweep: blocks
are declared in reverse dependency order, so each sweep emits one block.

Usage:
    python benchmarks/bench_tangle.py [--sizes 10,50,100] [--iterations 5]
"""

import argparse
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from exorg import ExorgError, tangle


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""
    mode: str
    num_blocks: int
    duration_ms: float
    success: bool
    error: Optional[str] = None


def generate_document(num_blocks: int, lines_per_block: int = 10) -> str:
    """Generate an Org document whose blocks form one dependency chain."""
    lines = ["#+TITLE: Benchmark Document", ""]

    # block{i} depends on block{i+1}; the last block has no dependencies
    for i in range(num_blocks):
        lines.append(f"#+NAME: block{i}")
        if i + 1 < num_blocks:
            lines.append(f"#+DEPS: block{i + 1}")
        lines.append("#+BEGIN_SRC python")
        for j in range(lines_per_block):
            lines.append(f"print('Block {i} line {j}')")
        lines.append("#+END_SRC")
        lines.append("")

    return "\n".join(lines)


def run_in_process(document: Path, workdir: Path) -> tuple[float, bool, Optional[str]]:
    """Tangle through the API and return (duration_ms, success, error)."""
    start = time.perf_counter()
    try:
        tangle(document, "python", selector="block0", base_dir=workdir)
    except ExorgError as e:
        return (time.perf_counter() - start) * 1000, False, str(e)
    return (time.perf_counter() - start) * 1000, True, None


def run_cli(document: Path, workdir: Path, timeout: float = 60.0) -> tuple[float, bool, Optional[str]]:
    """Tangle through the CLI and return (duration_ms, success, error)."""
    cmd = [sys.executable, "-m", "exorg", "tangle", "python", str(document), "-b", "block0"]
    start = time.perf_counter()
    try:
        result = subprocess.run(
            cmd,
            cwd=workdir,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        duration = (time.perf_counter() - start) * 1000

        if result.returncode != 0:
            return duration, False, result.stderr or result.stdout
        return duration, True, None

    except subprocess.TimeoutExpired:
        duration = (time.perf_counter() - start) * 1000
        return duration, False, "Timeout"


def benchmark_mode(
    mode: str,
    document: Path,
    workdir: Path,
    iterations: int,
    num_blocks: int,
) -> list[BenchmarkResult]:
    """Benchmark a single mode."""
    runner = run_in_process if mode == "in-process" else run_cli
    results = []

    for _ in range(iterations):
        output_file = workdir / "bench.py"
        if output_file.exists():
            output_file.unlink()

        duration, success, error = runner(document, workdir)
        results.append(BenchmarkResult(
            mode=mode,
            num_blocks=num_blocks,
            duration_ms=duration,
            success=success,
            error=error,
        ))

    return results


def print_results(all_results: dict[str, list[BenchmarkResult]], sizes: list[int]) -> None:
    """Print benchmark results in a table format."""
    print("\n" + "=" * 60)
    print("BENCHMARK RESULTS: Tangle Operation")
    print("=" * 60)

    modes = list(all_results.keys())

    header = f"{'Blocks':<10}"
    for mode in modes:
        header += f"{mode:<20}"
    print(header)
    print("-" * (10 + 20 * len(modes)))

    for size in sizes:
        row = f"{size:<10}"
        for mode in modes:
            results = [r for r in all_results[mode] if r.num_blocks == size and r.success]
            if results:
                avg_ms = sum(r.duration_ms for r in results) / len(results)
                row += f"{avg_ms:>8.2f} ms        "
            else:
                row += f"{'ERROR':<20}"
        print(row)

    print("-" * (10 + 20 * len(modes)))
    print()


def main():
    parser = argparse.ArgumentParser(description="Benchmark exorg tangling")
    parser.add_argument(
        "--sizes",
        type=str,
        default="10,50,100,200",
        help="Comma-separated list of block counts to test (default: 10,50,100,200)",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of iterations per benchmark (default: 5)",
    )
    parser.add_argument(
        "--skip-cli",
        action="store_true",
        help="Only time the in-process API",
    )
    args = parser.parse_args()

    sizes = [int(s.strip()) for s in args.sizes.split(",")]
    modes = ["in-process"] if args.skip_cli else ["in-process", "cli"]

    print(f"Modes: {', '.join(modes)}")
    print(f"Sizes: {sizes}")
    print(f"Iterations: {args.iterations}")

    all_results: dict[str, list[BenchmarkResult]] = {mode: [] for mode in modes}

    with tempfile.TemporaryDirectory() as tmpdir:
        workdir = Path(tmpdir)

        for size in sizes:
            print(f"\nBenchmarking with {size} blocks...")
            document = workdir / "bench.org"
            document.write_text(generate_document(size))

            for mode in modes:
                print(f"  Running {mode}...", end=" ", flush=True)
                results = benchmark_mode(mode, document, workdir, args.iterations, size)
                all_results[mode].extend(results)

                successful = [r for r in results if r.success]
                if successful:
                    avg = sum(r.duration_ms for r in successful) / len(successful)
                    print(f"{avg:.2f} ms (avg of {len(successful)}/{len(results)})")
                else:
                    print(f"FAILED: {results[0].error if results else 'unknown'}")

    print_results(all_results, sizes)


if __name__ == "__main__":
    main()
