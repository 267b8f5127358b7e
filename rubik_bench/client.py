"""HTTP client for the cube engine server."""

from __future__ import annotations

import json
from urllib import error, request


class SolverAPIError(RuntimeError):
    def __init__(self, status: int, kind: str | None, message: str):
        self.status = status
        self.kind = kind
        super().__init__(f"HTTP {status}: {message}")


class SolverAPIClient:
    def __init__(self, host: str = "127.0.0.1", port: int = 8000, timeout: float = 60.0):
        self.base = f"http://{host}:{port}"
        self.timeout = timeout

    def _call(self, method: str, path: str, payload: dict | None = None) -> dict:
        data = None
        headers = {}
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = request.Request(url=f"{self.base}{path}", method=method, data=data, headers=headers)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except error.HTTPError as exc:
            try:
                body = json.loads(exc.read().decode("utf-8"))
            except ValueError:
                body = {}
            raise SolverAPIError(exc.code, body.get("kind"), body.get("error", exc.reason)) from exc

    def health(self) -> dict:
        return self._call("GET", "/health")

    def validate(self, facelets: str | list) -> dict:
        return self._call("POST", "/validate", {"facelets": facelets})

    def solve(
        self,
        facelets: str | list,
        max_depth: int | None = None,
        time_budget: float | None = None,
        optimize: bool = True,
    ) -> dict:
        payload: dict = {"facelets": facelets, "optimize": optimize}
        if max_depth is not None:
            payload["max_depth"] = int(max_depth)
        if time_budget is not None:
            payload["time_budget"] = float(time_budget)
        return self._call("POST", "/solve", payload)

    def optimize(self, moves: str | list) -> dict:
        return self._call("POST", "/optimize", {"moves": moves})

    def scramble(self, steps: int, seed: int | None = None) -> dict:
        return self._call("POST", "/scramble", {"steps": int(steps), "seed": seed})

    def apply(self, facelets: str | list, moves: str | list) -> dict:
        return self._call("POST", "/apply", {"facelets": facelets, "moves": moves})
