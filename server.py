"""
EvoDash Server  –  Flask + Server-Sent Events
=============================================

Endpoints:
  POST   /start                 Start (or restart) the demo driver with JSON config body
  POST   /stop                  Stop the running demo driver
  POST   /tick/<graph_id>       Reconcile a complete gene list  {"genes": [...]}
  POST   /telemetry/<graph_id>  Forward a value to a dashboard graph  {"value": ...}
  GET    /topology/<graph_id>   Full current topology (for late subscribers)
  DELETE /instances/<graph_id>  Release a topology instance
  GET    /dashboard             Widget layout
  GET    /status                Current driver state as JSON
  GET    /stream                SSE stream – browser subscribes here for live deltas

Run:
  python server.py
  # → http://localhost:3000
"""

import threading
import queue
import json

from flask import Flask, Response, request, jsonify

from config import (
    SERVER_HOST, SERVER_PORT, STREAM_QUEUE_SIZE, STREAM_PING_SECONDS,
    NUM_INPUTS, NUM_OUTPUTS, INSTANCES, MAX_TICKS, TICK_DELAY_S,
    ADD_CONN_PR, ADD_NEURON_PR, WEIGHT_MUTATE_PR, TOGGLE_EXPR_PR,
)
from dashboard import default_dashboard
from driver import TopologyDriver
from genes import InvalidGeneError
from render_adapter import RenderAdapter
from topology import TopologySnapshot


# ──────────────────────────────────────────────────────────────────────────────
# Stream adapter
# ──────────────────────────────────────────────────────────────────────────────

class StreamRenderAdapter(RenderAdapter):
    """Turns deltas and telemetry into SSE payloads on a bounded queue."""

    def __init__(self, maxsize: int = STREAM_QUEUE_SIZE):
        self.queue = queue.Queue(maxsize=maxsize)

    def push(self, payload: dict):
        # Non-blocking put; drop oldest frame if queue full
        while True:
            try:
                self.queue.put_nowait(payload)
                return
            except queue.Full:
                try:
                    self.queue.get_nowait()
                except queue.Empty:
                    pass

    def apply_delta(self, delta):
        self.push({"type": "delta", **delta.to_dict()})

    def publish(self, graph_id, kind, value):
        self.push({"type": "telemetry", "graph": graph_id,
                   "kind": kind, "value": value})

    def release(self, instance_id):
        self.push({"type": "release", "instance": instance_id})

    def reset(self):
        self.queue = queue.Queue(maxsize=self.queue.maxsize)


# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global server state
_stream       = StreamRenderAdapter()
_dashboard    = default_dashboard([_stream])
_core_lock    = threading.Lock()     # one reconciliation at a time
_driver_thread: threading.Thread | None = None
_stop_event   = threading.Event()
_run_status   = {
    "running":   False,
    "tick":      0,
    "max_ticks": 0,
    "cfg":       {},
}
_status_lock  = threading.Lock()


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow a dashboard served from any origin to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


# ──────────────────────────────────────────────────────────────────────────────
# Driver thread
# ──────────────────────────────────────────────────────────────────────────────

def _build_cfg(data: dict) -> dict:
    """Merge request JSON with defaults."""
    seed = data.get("seed")
    return {
        "n_inputs":         int(data.get("inputs",         NUM_INPUTS)),
        "n_outputs":        int(data.get("outputs",        NUM_OUTPUTS)),
        "instances":        int(data.get("instances",      INSTANCES)),
        "max_ticks":        int(data.get("maxTicks",       MAX_TICKS)),
        "tick_delay_s":     float(data.get("tickDelay",    TICK_DELAY_S)),
        "add_conn_pr":      float(data.get("addConnPr",    ADD_CONN_PR)),
        "add_neuron_pr":    float(data.get("addNeuronPr",  ADD_NEURON_PR)),
        "weight_mutate_pr": float(data.get("weightMutatePr", WEIGHT_MUTATE_PR)),
        "toggle_expr_pr":   float(data.get("toggleExprPr", TOGGLE_EXPR_PR)),
        "seed":             None if seed is None else int(seed),
    }


def _driver_worker(cfg: dict, stop_evt: threading.Event):
    """Run the demo driver in a background thread; every tick goes through the dashboard."""

    def on_tick(tick, instance_id, genes):
        if stop_evt.is_set():
            return
        with _core_lock:
            _dashboard.network(instance_id, genes)
        with _status_lock:
            _run_status["tick"] = tick

    driver = TopologyDriver(on_tick_callback=on_tick, **cfg)

    # Start every driven topology from scratch
    with _core_lock:
        for iid in driver.instance_ids:
            _dashboard.release(iid)

    with _status_lock:
        _run_status["running"] = True

    try:
        driver.run(stop_evt)
    finally:
        with _status_lock:
            _run_status["running"] = False
        _stream.push({"type": "done", "tick": _run_status["tick"]})


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _driver_thread, _stop_event

    # Stop any running driver
    _stop_event.set()
    if _driver_thread and _driver_thread.is_alive():
        _driver_thread.join(timeout=3)

    # Reset
    _stop_event = threading.Event()
    _stream.reset()
    data = request.get_json(force=True, silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "body must be a JSON object"}), 400
    try:
        cfg = _build_cfg(data)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": f"bad config: {exc}"}), 400

    with _status_lock:
        _run_status["tick"]      = 0
        _run_status["running"]   = False
        _run_status["cfg"]       = cfg
        _run_status["max_ticks"] = cfg["max_ticks"]

    _driver_thread = threading.Thread(
        target=_driver_worker,
        args=(cfg, _stop_event),
        daemon=True,
    )
    _driver_thread.start()
    return jsonify({"status": "started", "cfg": cfg})


@app.route("/stop", methods=["POST"])
def stop():
    _stop_event.set()
    return jsonify({"status": "stopped"})


@app.route("/tick/<graph_id>", methods=["POST"])
def tick(graph_id):
    """Reconcile one externally supplied gene list and return its delta."""
    data = request.get_json(force=True, silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "body must be a JSON object"}), 400
    try:
        with _core_lock:
            delta = _dashboard.network(graph_id, data.get("genes"))
    except ValueError as exc:
        # InvalidGeneError, or a graph that is not a network
        return jsonify({"error": str(exc)}), 400
    return jsonify(delta.to_dict())


@app.route("/telemetry/<graph_id>", methods=["POST"])
def telemetry(graph_id):
    data = request.get_json(force=True, silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "body must be a JSON object"}), 400
    if "value" not in data:
        return jsonify({"error": "missing value"}), 400
    try:
        with _core_lock:
            result = _dashboard.telemetry(graph_id, data["value"])
    except KeyError:
        return jsonify({"error": f"unknown graph {graph_id!r}"}), 404
    except (InvalidGeneError, TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400
    if result is not None:
        return jsonify(result.to_dict())
    return jsonify({"status": "ok"})


@app.route("/topology/<graph_id>", methods=["GET"])
def topology(graph_id):
    with _core_lock:
        if graph_id in _dashboard.registry:
            return jsonify(_dashboard.registry.snapshot(graph_id).to_dict())
    return jsonify(TopologySnapshot(instance_id=graph_id).to_dict())


@app.route("/instances/<graph_id>", methods=["DELETE"])
def release_instance(graph_id):
    with _core_lock:
        released = _dashboard.release(graph_id)
    return jsonify({"instance": graph_id, "released": released})


@app.route("/dashboard", methods=["GET"])
def dashboard_layout():
    return jsonify({"graphs": _dashboard.layout()})


@app.route("/status", methods=["GET"])
def status():
    with _status_lock:
        state = dict(_run_status)
    with _core_lock:
        state["instances"] = _dashboard.registry.instance_ids()
    return jsonify(state)


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – browser subscribes and receives each delta as an event."""
    def event_gen():
        # Send a hello so the browser knows it's connected
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = _stream.queue.get(timeout=STREAM_PING_SECONDS)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") == "done":
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 50)
    print(f"  EvoDash Server  →  http://localhost:{SERVER_PORT}")
    print(f"  SSE stream      →  http://localhost:{SERVER_PORT}/stream")
    print("=" * 50)
    app.run(host=SERVER_HOST, port=SERVER_PORT, threaded=True, debug=False)
