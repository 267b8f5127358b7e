"""HTTP API server for the cube engine."""

from __future__ import annotations

import json
import threading
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .engine import RubikEngine
from .errors import InternalInvariantError, MalformedInputError, RubikEngineError, SolverTimeoutError
from .moves import apply, format_moves, parse_moves
from .optimizer import optimize_moves
from .solver import SolverOptions
from .state_codec import CubeState


def _log(message: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {message}", flush=True)


def _status_for(exc: RubikEngineError) -> int:
    if isinstance(exc, SolverTimeoutError):
        return 408
    if isinstance(exc, InternalInvariantError):
        return 500
    return 400


class RubikHTTPServer:
    def __init__(
        self,
        engine: RubikEngine,
        host: str = "127.0.0.1",
        port: int = 8000,
        verbose: bool = False,
    ):
        self.engine = engine
        self.verbose = verbose

        handler_cls = self._build_handler()
        self.httpd = ThreadingHTTPServer((host, port), handler_cls)
        self.host, self.port = self.httpd.server_address[:2]

    def _solve_options(self, body: dict[str, Any]) -> SolverOptions:
        base = self.engine.options
        max_depth = body.get("max_depth", base.max_depth)
        time_budget = body.get("time_budget", base.time_budget)
        return SolverOptions(
            max_depth=max_depth,
            time_budget=time_budget,
            retry_on_timeout=base.retry_on_timeout,
            retry_depth_step=base.retry_depth_step,
            retry_time_factor=base.retry_time_factor,
        )

    def _build_handler(self):
        parent = self

        class Handler(BaseHTTPRequestHandler):
            server_version = "RubikEngine/1.0"

            def log_message(self, fmt: str, *args):
                return

            def _send_json(self, code: int, payload: dict[str, Any]):
                body = json.dumps(payload).encode("utf-8")
                self.send_response(code)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _read_json(self) -> dict[str, Any]:
                length = int(self.headers.get("Content-Length", "0"))
                if length == 0:
                    return {}
                data = self.rfile.read(length)
                try:
                    obj = json.loads(data.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                    raise MalformedInputError(f"Invalid JSON body: {exc}") from exc
                if not isinstance(obj, dict):
                    raise MalformedInputError("JSON body must be an object")
                return obj

            def _require(self, body: dict[str, Any], key: str) -> Any:
                if key not in body:
                    raise MalformedInputError(f"Missing required field: {key}")
                return body[key]

            def do_GET(self):
                if self.path == "/health":
                    self._send_json(200, parent.engine.health_payload())
                    return

                self._send_json(404, {"error": "Not Found"})

            def do_POST(self):
                try:
                    body = self._read_json()

                    if self.path == "/validate":
                        cube = parent.engine.validate(self._require(body, "facelets"))
                        self._send_json(200, {"valid": True, "cubie": cube.cubie.to_dict()})
                        return

                    if self.path == "/solve":
                        facelets = self._require(body, "facelets")
                        options = parent._solve_options(body)
                        do_optimize = body.get("optimize", True)
                        if not isinstance(do_optimize, bool):
                            raise MalformedInputError("optimize must be a boolean")
                        steps = parent.engine.solve_facelets(facelets, options, optimize_result=do_optimize)
                        if parent.verbose:
                            _log(f"solve length={len(steps)} max_depth={options.max_depth}")
                        self._send_json(
                            200,
                            {
                                "steps": [s.to_dict() for s in steps],
                                "moves": " ".join(s.move for s in steps),
                                "length": len(steps),
                            },
                        )
                        return

                    if self.path == "/optimize":
                        moves = optimize_moves(self._require(body, "moves"))
                        self._send_json(200, {"moves": format_moves(moves), "length": len(moves)})
                        return

                    if self.path == "/scramble":
                        steps = self._require(body, "steps")
                        seed = body.get("seed")
                        if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool)):
                            raise MalformedInputError("seed must be an integer or null")
                        state, moves = parent.engine.scramble(steps, seed=seed)
                        self._send_json(200, {"moves": " ".join(moves), "facelets": state.to_string()})
                        return

                    if self.path == "/apply":
                        state = CubeState(self._require(body, "facelets"))
                        moves = parse_moves(self._require(body, "moves"))
                        out = apply(state, moves)
                        self._send_json(200, {"facelets": out.to_string(), "solved": out.is_solved})
                        return

                except RubikEngineError as exc:
                    code = _status_for(exc)
                    if code == 500 or parent.verbose:
                        _log(f"request_error path={self.path} status={code} kind={exc.kind} error={exc}")
                    self._send_json(code, {"error": str(exc), "kind": exc.kind})
                    return

                self._send_json(404, {"error": "Not Found"})

        return Handler

    def serve_forever(self):
        self.httpd.serve_forever()

    def start_background(self, daemon: bool = True) -> threading.Thread:
        thread = threading.Thread(target=self.serve_forever, daemon=daemon)
        thread.start()
        return thread

    def shutdown(self):
        self.httpd.shutdown()
        self.httpd.server_close()
