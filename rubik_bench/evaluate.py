"""Solver benchmark over scramble depths."""

from __future__ import annotations

import argparse
import csv
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from rubik_engine.engine import RubikEngine
from rubik_engine.errors import SolverTimeoutError
from rubik_engine.moves import apply, parse_moves, scramble
from rubik_engine.solver import SolverOptions
from rubik_engine.state_codec import CubeState

from .client import SolverAPIClient, SolverAPIError

matplotlib.use("Agg")


@dataclass
class DepthMetrics:
    scramble_depth: int
    samples: int
    solved_count: int
    timeout_count: int
    success_rate: float
    length_min: float | None
    length_mean: float | None
    length_max: float | None
    solve_time_min: float
    solve_time_mean: float
    solve_time_max: float
    eval_time_sec: float
    solves_per_sec: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "scramble_depth": self.scramble_depth,
            "samples": self.samples,
            "solved_count": self.solved_count,
            "timeout_count": self.timeout_count,
            "success_rate": self.success_rate,
            "length_min": self.length_min,
            "length_mean": self.length_mean,
            "length_max": self.length_max,
            "solve_time_min": self.solve_time_min,
            "solve_time_mean": self.solve_time_mean,
            "solve_time_max": self.solve_time_max,
            "eval_time_sec": self.eval_time_sec,
            "solves_per_sec": self.solves_per_sec,
        }


FIELDNAMES = list(DepthMetrics.__dataclass_fields__)


def _aggregate_metrics(
    scramble_depth: int,
    solved: np.ndarray,
    lengths: np.ndarray,
    solve_times: np.ndarray,
    eval_time_sec: float,
) -> DepthMetrics:
    solved = np.asarray(solved, dtype=bool)
    lengths = np.asarray(lengths, dtype=np.int64)
    solve_times = np.asarray(solve_times, dtype=np.float64)
    samples = int(solved.size)
    solved_count = int(solved.sum())
    success_rate = float(solved_count / samples) if samples > 0 else 0.0

    if solved_count > 0:
        solved_lengths = lengths[solved]
        length_min = float(np.min(solved_lengths))
        length_mean = float(np.mean(solved_lengths))
        length_max = float(np.max(solved_lengths))
    else:
        length_min = None
        length_mean = None
        length_max = None

    return DepthMetrics(
        scramble_depth=scramble_depth,
        samples=samples,
        solved_count=solved_count,
        timeout_count=samples - solved_count,
        success_rate=success_rate,
        length_min=length_min,
        length_mean=length_mean,
        length_max=length_max,
        solve_time_min=float(np.min(solve_times)) if samples > 0 else 0.0,
        solve_time_mean=float(np.mean(solve_times)) if samples > 0 else 0.0,
        solve_time_max=float(np.max(solve_times)) if samples > 0 else 0.0,
        eval_time_sec=float(eval_time_sec),
        solves_per_sec=float(samples / max(eval_time_sec, 1e-9)),
    )


def _fmt_opt(v: float | None) -> str:
    return "N/A" if v is None else f"{v:.2f}"


def _print_header() -> None:
    print(
        "scramble | success_rate | solved/total | length(min/mean/max) | time_s(min/mean/max) | solves/s",
        flush=True,
    )


def _print_row(m: DepthMetrics) -> None:
    length = f"{_fmt_opt(m.length_min)}/{_fmt_opt(m.length_mean)}/{_fmt_opt(m.length_max)}"
    times = f"{m.solve_time_min:.3f}/{m.solve_time_mean:.3f}/{m.solve_time_max:.3f}"
    print(
        f"{m.scramble_depth:8d} | "
        f"{m.success_rate:11.4f} | "
        f"{m.solved_count:6d}/{m.samples:<6d} | "
        f"{length:20s} | "
        f"{times:20s} | "
        f"{m.solves_per_sec:8.2f}",
        flush=True,
    )


def _plot_metrics(metrics: list[DepthMetrics], output_dir: Path, prefix: str) -> tuple[Path, Path]:
    depths = np.array([m.scramble_depth for m in metrics], dtype=np.int64)
    sr = np.array([m.success_rate for m in metrics], dtype=np.float64)

    len_min = np.array([np.nan if m.length_min is None else m.length_min for m in metrics], dtype=np.float64)
    len_mean = np.array([np.nan if m.length_mean is None else m.length_mean for m in metrics], dtype=np.float64)
    len_max = np.array([np.nan if m.length_max is None else m.length_max for m in metrics], dtype=np.float64)

    fig1 = plt.figure(figsize=(10, 5))
    ax1 = fig1.add_subplot(111)
    ax1.plot(depths, sr, marker="o", linewidth=2.0)
    ax1.set_title("Solver Benchmark: Success Rate vs Scramble Depth")
    ax1.set_xlabel("Scramble depth")
    ax1.set_ylabel("Success rate")
    ax1.set_ylim(0.0, 1.05)
    ax1.grid(True, alpha=0.3)
    sr_path = output_dir / f"{prefix}_success_rate.png"
    fig1.tight_layout()
    fig1.savefig(sr_path, dpi=160)
    plt.close(fig1)

    fig2 = plt.figure(figsize=(11, 6))
    ax2 = fig2.add_subplot(111)
    ax2.plot(depths, len_min, marker="o", linewidth=1.8, label="Length min")
    ax2.plot(depths, len_mean, marker="o", linewidth=1.8, label="Length mean")
    ax2.plot(depths, len_max, marker="o", linewidth=1.8, label="Length max")
    ax2.plot(depths, depths, linestyle="--", alpha=0.7, linewidth=1.5, label="Scramble length")
    ax2.set_title("Solver Benchmark: Solution Length")
    ax2.set_xlabel("Scramble depth")
    ax2.set_ylabel("Moves")
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="best")
    length_path = output_dir / f"{prefix}_solution_length.png"
    fig2.tight_layout()
    fig2.savefig(length_path, dpi=160)
    plt.close(fig2)

    return sr_path, length_path


def _save_reports(
    metrics: list[DepthMetrics],
    output_dir: Path,
    prefix: str,
    args: argparse.Namespace,
) -> tuple[Path, Path]:
    csv_path = output_dir / f"{prefix}_metrics.csv"
    json_path = output_dir / f"{prefix}_metrics.json"

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for m in metrics:
            writer.writerow(m.to_dict())

    payload = {
        "config": {
            "samples_per_depth": int(args.samples_per_depth),
            "depth_min": int(args.depth_min),
            "depth_max": int(args.depth_max),
            "max_depth": int(args.max_depth),
            "time_budget": args.time_budget,
            "seed": args.seed,
            "api": args.api,
            "progress": args.progress,
        },
        "metrics": [m.to_dict() for m in metrics],
    }
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return csv_path, json_path


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Benchmark the two-phase solver over scramble depths")
    p.add_argument("--samples-per-depth", type=int, default=20)
    p.add_argument("--depth-min", type=int, default=1)
    p.add_argument("--depth-max", type=int, default=20)
    p.add_argument("--max-depth", type=int, default=24)
    p.add_argument("--time-budget", type=float, default=None, help="Seconds per solve")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--cache-dir", default=None, help="Solver table cache directory")
    p.add_argument("--api", default=None, help="Benchmark a running server at host:port instead of in-process")
    p.add_argument("--output-dir", default="bench_reports")
    p.add_argument("--output-prefix", default="solver_bench")
    p.add_argument("--progress", default="on", choices=["on", "off"])
    return p


def _api_solver(address: str, options: SolverOptions):
    host, _, port = address.rpartition(":")
    if not host or not port.isdigit():
        raise ValueError("--api must look like host:port")
    client = SolverAPIClient(host=host, port=int(port), timeout=max(60.0, 4 * (options.time_budget or 0.0)))

    def solve(state: CubeState) -> list[str] | None:
        try:
            out = client.solve(state.to_string(), max_depth=options.max_depth, time_budget=options.time_budget)
        except SolverAPIError as exc:
            if exc.status == 408:
                return None
            raise
        return out["moves"].split()

    return solve


def _engine_solver(engine: RubikEngine, options: SolverOptions):
    def solve(state: CubeState) -> list[str] | None:
        try:
            steps = engine.solve_facelets(state, options)
        except SolverTimeoutError:
            return None
        return [s.move for s in steps]

    return solve


def run_evaluation(args: argparse.Namespace) -> dict[str, Any]:
    if args.depth_min < 0 or args.depth_max < args.depth_min:
        raise ValueError("Require 0 <= depth_min <= depth_max")
    if args.samples_per_depth < 1:
        raise ValueError("--samples-per-depth must be >= 1")

    options = SolverOptions(max_depth=int(args.max_depth), time_budget=args.time_budget, retry_on_timeout=False)
    if args.api:
        solve = _api_solver(args.api, options)
    else:
        engine = RubikEngine(options=options, cache_dir=args.cache_dir)
        engine.warm_up()
        solve = _engine_solver(engine, options)
    rng = np.random.default_rng(args.seed)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print(
        "benchmark_init "
        f"samples_per_depth={args.samples_per_depth} depth_range={args.depth_min}..{args.depth_max} "
        f"max_depth={options.max_depth} time_budget={options.time_budget} api={args.api}",
        flush=True,
    )
    _print_header()

    metrics: list[DepthMetrics] = []
    for depth in range(int(args.depth_min), int(args.depth_max) + 1):
        t0 = time.perf_counter()
        n = int(args.samples_per_depth)
        solved_out = np.zeros((n,), dtype=bool)
        lengths_out = np.zeros((n,), dtype=np.int64)
        times_out = np.zeros((n,), dtype=np.float64)
        sample_iter = range(n)
        if args.progress == "on":
            sample_iter = tqdm(sample_iter, desc=f"depth={depth}", unit="cube", mininterval=1.0, leave=False)

        for i in sample_iter:
            state = apply(CubeState.solved(), scramble(depth, rng=rng))
            s0 = time.perf_counter()
            moves = solve(state)
            times_out[i] = time.perf_counter() - s0
            if moves is None:
                continue
            if not apply(state, parse_moves(moves)).is_solved:
                raise RuntimeError(f"Solver returned a non-solving sequence for {state.to_string()}")
            solved_out[i] = True
            lengths_out[i] = len(moves)

        m = _aggregate_metrics(depth, solved_out, lengths_out, times_out, time.perf_counter() - t0)
        metrics.append(m)
        _print_row(m)

    sr_path, length_path = _plot_metrics(metrics, output_dir, args.output_prefix)
    csv_path, json_path = _save_reports(metrics, output_dir, args.output_prefix, args)

    avg_sr = float(np.mean([m.success_rate for m in metrics]))
    print(
        "benchmark_summary "
        f"avg_success_rate={avg_sr:.4f} sr_plot={sr_path} length_plot={length_path} "
        f"csv={csv_path} json={json_path}",
        flush=True,
    )

    return {
        "metrics": metrics,
        "sr_plot": sr_path,
        "length_plot": length_path,
        "csv": csv_path,
        "json": json_path,
    }


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    run_evaluation(args)


if __name__ == "__main__":
    main()
