"""CLI entrypoint for the cube engine."""

from __future__ import annotations

import argparse
import sys
import time
from datetime import datetime

from .config import build_config, load_config
from .engine import RubikEngine
from .errors import RubikEngineError
from .export import format_listing
from .moves import apply, format_moves, parse_moves
from .server import RubikHTTPServer
from .state_codec import CubeState, from_face_string
from .tables import get_tables


def _log(message: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {message}", flush=True)


def _load_engine_config(args: argparse.Namespace):
    raw = load_config(args.config) if args.config else {}
    return build_config(
        raw,
        max_depth=getattr(args, "max_depth", None),
        time_budget=getattr(args, "time_budget", None),
        cache_dir=args.cache_dir,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
    )


def _read_cube(args: argparse.Namespace) -> CubeState:
    given = [x for x in (args.facelets, args.faces, args.scramble) if x is not None]
    if len(given) != 1:
        raise ValueError("Use exactly one of --facelets, --faces or --scramble")
    if args.facelets is not None:
        return CubeState(args.facelets)
    if args.faces is not None:
        return from_face_string(args.faces)
    return apply(CubeState.solved(), args.scramble)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rubik-engine", description="Rubik 3x3 two-phase solver")
    sub = parser.add_subparsers(dest="mode", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=str, default=None, help="YAML config file")
    common.add_argument("--cache-dir", type=str, default=None, help="Directory for cached solver tables")

    solver = argparse.ArgumentParser(add_help=False)
    solver.add_argument("--max-depth", type=int, default=None)
    solver.add_argument("--time-budget", type=float, default=None, help="Seconds per solve attempt")

    serve = sub.add_parser("serve", parents=[common, solver], help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--lazy-tables", action="store_true", help="Build tables on the first solve")
    serve.add_argument("--verbose", action="store_true")

    solve = sub.add_parser("solve", parents=[common, solver], help="Solve one cube and print the steps")
    solve.add_argument("--facelets", type=str, default=None, help="54 color initials (WRGYOB), faces URFDLB")
    solve.add_argument("--faces", type=str, default=None, help="54 face letters, URFDLB order")
    solve.add_argument("--scramble", type=str, default=None, help="Move sequence applied to the solved cube")
    solve.add_argument("--no-optimize", action="store_true")

    scramble = sub.add_parser("scramble", help="Print a random scramble and its facelets")
    scramble.add_argument("--steps", type=int, default=20)
    scramble.add_argument("--seed", type=int, default=None)

    bench = sub.add_parser("benchmark", help="Benchmark the solver over scramble depths")
    bench.add_argument("bench_args", nargs=argparse.REMAINDER)

    sub.add_parser("build-tables", parents=[common], help="Build the solver tables into --cache-dir")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode == "benchmark":
        from rubik_bench.evaluate import main as bench_main

        bench_main(args.bench_args)
        return

    if args.mode == "scramble":
        engine = RubikEngine()
        try:
            state, moves = engine.scramble(args.steps, seed=args.seed)
        except RubikEngineError as exc:
            parser.error(str(exc))
        print(f"moves={' '.join(moves)}")
        print(f"facelets={state.to_string()}")
        return

    config = _load_engine_config(args)

    if args.mode == "build-tables":
        if config.cache_dir is None:
            parser.error("build-tables needs --cache-dir or tables.cache_dir in --config")
        t0 = time.perf_counter()
        get_tables(cache_dir=config.cache_dir, verbose=True)
        _log(f"tables_ready cache_dir={config.cache_dir} elapsed={time.perf_counter() - t0:.2f}s")
        return

    engine = RubikEngine(options=config.solver, cache_dir=config.cache_dir)

    if args.mode == "serve":
        if not args.lazy_tables:
            _log("tables_loading")
            engine.warm_up()
            _log("tables_ready")
        server = RubikHTTPServer(engine=engine, host=config.server.host, port=config.server.port, verbose=args.verbose)
        print(f"Rubik engine server listening on http://{server.host}:{server.port}", flush=True)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            server.shutdown()
        return

    if args.mode == "solve":
        try:
            state = _read_cube(args)
            t0 = time.perf_counter()
            steps = engine.solve_facelets(state, optimize_result=not args.no_optimize)
        except (RubikEngineError, ValueError) as exc:
            print(f"error kind={type(exc).__name__} message={exc}", file=sys.stderr, flush=True)
            sys.exit(1)
        elapsed = time.perf_counter() - t0
        print(f"solution length={len(steps)} elapsed={elapsed:.3f}s moves={format_moves(parse_moves(steps))}")
        if steps:
            print(format_listing(steps))
        return

    parser.error(f"Unsupported mode: {args.mode}")


if __name__ == "__main__":
    main()
