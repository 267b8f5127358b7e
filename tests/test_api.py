import json
import threading
import time
import unittest
from urllib import error, request

from rubik_bench.client import SolverAPIClient, SolverAPIError
from rubik_engine.cubie import CubieCube
from rubik_engine.engine import RubikEngine
from rubik_engine.moves import apply
from rubik_engine.server import RubikHTTPServer
from rubik_engine.state_codec import CubeState


def http_json(method: str, url: str, payload: dict | None = None):
    data = None
    headers = {}
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url=url, method=method, data=data, headers=headers)
    with request.urlopen(req, timeout=30.0) as resp:
        body = resp.read().decode("utf-8")
        return resp.status, json.loads(body)


def http_error(method: str, url: str, payload: dict | None = None):
    try:
        http_json(method, url, payload)
    except error.HTTPError as exc:
        return exc.code, json.loads(exc.read().decode("utf-8"))
    raise AssertionError(f"{method} {url} did not fail")


class TestAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = RubikEngine()
        cls.engine.warm_up()

    def setUp(self):
        self.server = RubikHTTPServer(engine=self.engine, host="127.0.0.1", port=0)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        time.sleep(0.05)
        self.base = f"http://{self.server.host}:{self.server.port}"

    def tearDown(self):
        self.server.shutdown()
        self.thread.join(timeout=1.0)

    def test_health(self):
        status, out = http_json("GET", f"{self.base}/health")
        self.assertEqual(status, 200)
        self.assertTrue(out["ready"])
        self.assertTrue(out["tables_loaded"])
        self.assertEqual(out["max_depth"], 24)

    def test_validate_returns_cubie_form(self):
        state = apply(CubeState.solved(), "R U")
        status, out = http_json("POST", f"{self.base}/validate", {"facelets": state.to_string()})
        self.assertEqual(status, 200)
        self.assertTrue(out["valid"])
        self.assertEqual(sorted(out["cubie"]["cp"]), list(range(8)))
        self.assertEqual(sorted(out["cubie"]["ep"]), list(range(12)))

    def test_solve_returns_solving_steps(self):
        state = apply(CubeState.solved(), "R U R' F2")
        status, out = http_json("POST", f"{self.base}/solve", {"facelets": state.to_string()})
        self.assertEqual(status, 200)
        self.assertEqual(out["length"], len(out["steps"]))
        self.assertEqual(out["moves"], " ".join(s["move"] for s in out["steps"]))
        self.assertTrue(apply(state, out["moves"]).is_solved)

    def test_solve_past_depth_limit_returns_408(self):
        state = apply(CubeState.solved(), "R U F")
        code, out = http_error("POST", f"{self.base}/solve", {"facelets": state.to_string(), "max_depth": 0})
        self.assertEqual(code, 408)
        self.assertEqual(out["kind"], "SolverTimeoutError")

    def test_invalid_inputs_return_400(self):
        code, out = http_error("POST", f"{self.base}/solve", {"facelets": "W" * 10})
        self.assertEqual(code, 400)
        self.assertEqual(out["kind"], "MalformedInputError")

        flipped = CubeState(CubieCube(eo=[1] + [0] * 11).to_colors()).to_string()
        code, out = http_error("POST", f"{self.base}/validate", {"facelets": flipped})
        self.assertEqual(code, 400)
        self.assertEqual(out["kind"], "OrientationError")

        code, out = http_error("POST", f"{self.base}/solve", {})
        self.assertEqual(code, 400)
        self.assertIn("facelets", out["error"])

        code, out = http_error("POST", f"{self.base}/optimize", {"moves": "R X"})
        self.assertEqual(code, 400)

    def test_optimize_scramble_and_apply(self):
        status, out = http_json("POST", f"{self.base}/optimize", {"moves": "R R U U'"})
        self.assertEqual(status, 200)
        self.assertEqual(out, {"moves": "R2", "length": 1})

        status, out = http_json("POST", f"{self.base}/scramble", {"steps": 12, "seed": 7})
        self.assertEqual(status, 200)
        self.assertEqual(len(out["moves"].split()), 12)
        self.assertEqual(apply(CubeState.solved(), out["moves"]).to_string(), out["facelets"])

        status, applied = http_json(
            "POST", f"{self.base}/apply", {"facelets": CubeState.solved().to_string(), "moves": out["moves"]}
        )
        self.assertEqual(status, 200)
        self.assertEqual(applied["facelets"], out["facelets"])
        self.assertFalse(applied["solved"])

    def test_unknown_paths_return_404(self):
        code, _ = http_error("GET", f"{self.base}/state")
        self.assertEqual(code, 404)
        code, _ = http_error("POST", f"{self.base}/step", {})
        self.assertEqual(code, 404)

    def test_client_wraps_endpoints(self):
        client = SolverAPIClient(host=self.server.host, port=self.server.port, timeout=30.0)
        self.assertTrue(client.health()["ready"])

        scrambled = client.scramble(5, seed=3)
        out = client.solve(scrambled["facelets"], max_depth=22)
        self.assertTrue(client.apply(scrambled["facelets"], out["moves"])["solved"])
        self.assertEqual(client.optimize(["U", "U", "U"])["moves"], "U'")

        with self.assertRaises(SolverAPIError) as ctx:
            client.validate("not a cube")
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.kind, "MalformedInputError")


if __name__ == "__main__":
    unittest.main()
