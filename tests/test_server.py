"""
Tests for the Flask front end.

Each test gets a fresh dashboard and stream so server globals do not leak
between tests. The demo driver is exercised with tiny, delay-free runs.
"""

import json

import pytest

import server
from dashboard import default_dashboard


def g(src, dst, weight=0.5, enabled=True):
    return {"in_neuron_id": src, "out_neuron_id": dst,
            "weight": weight, "enabled": enabled}


@pytest.fixture
def client(monkeypatch):
    stream = server.StreamRenderAdapter()
    monkeypatch.setattr(server, "_stream", stream)
    monkeypatch.setattr(server, "_dashboard", default_dashboard([stream]))
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c
    server._stop_event.set()
    if server._driver_thread is not None:
        server._driver_thread.join(timeout=5)


def _drain(stream):
    items = []
    while not stream.queue.empty():
        items.append(stream.queue.get_nowait())
    return items


def _events(resp):
    body = resp.get_data(as_text=True)
    return [json.loads(chunk[len("data: "):])
            for chunk in body.split("\n\n") if chunk.startswith("data: ")]


# ===================================================================
# /tick
# ===================================================================

class TestTick:

    def test_growth_then_clear(self, client):
        resp = client.post("/tick/network1", json={"genes": [g(1, 2, 0.3)]})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["addNodes"] == ["node1", "node2"]
        assert body["addEdges"] == [{"source": "node1", "target": "node2", "value": 0.3}]
        assert body["tick"] == 1

        body = client.post("/tick/network1", json={"genes": []}).get_json()
        assert body["removeEdges"] == [{"source": "node1", "target": "node2"}]
        assert body["removeNodes"] == ["node1", "node2"]

    def test_invalid_gene_is_400_and_changes_nothing(self, client):
        client.post("/tick/network1", json={"genes": [g(1, 2)]})
        resp = client.post("/tick/network1",
                           json={"genes": [g(5, 6), {"in_neuron_id": 3}]})
        assert resp.status_code == 400
        assert "out_neuron_id" in resp.get_json()["error"]

        topo = client.get("/topology/network1").get_json()
        assert topo["nodes"] == ["node1", "node2"]
        assert topo["tick"] == 1

    def test_missing_gene_list_is_400(self, client):
        assert client.post("/tick/network1", json={}).status_code == 400

    def test_delta_is_streamed(self, client):
        client.post("/tick/network1", json={"genes": [g(1, 2)]})
        payloads = _drain(server._stream)
        assert payloads[0]["type"] == "delta"
        assert payloads[0]["instance"] == "network1"
        assert payloads[0]["addNodes"] == ["node1", "node2"]


# ===================================================================
# /telemetry, /topology, /instances, /dashboard
# ===================================================================

def test_telemetry_fitness(client):
    resp = client.post("/telemetry/fitness1", json={"value": 4.5})
    assert resp.get_json() == {"status": "ok"}
    assert _drain(server._stream) == [
        {"type": "telemetry", "graph": "fitness1", "kind": "fitness", "value": 4.5}]


def test_telemetry_network_returns_delta(client):
    resp = client.post("/telemetry/network1", json={"value": [g(1, 2)]})
    assert resp.get_json()["addNodes"] == ["node1", "node2"]


def test_telemetry_errors(client):
    assert client.post("/telemetry/nowhere", json={"value": 1}).status_code == 404
    assert client.post("/telemetry/fitness1", json={}).status_code == 400
    assert client.post("/telemetry/fitness1", json={"value": "high"}).status_code == 400


def test_topology_of_unknown_instance_is_empty_and_not_created(client):
    body = client.get("/topology/ghost").get_json()
    assert body == {"instance": "ghost", "tick": 0, "nodes": [], "edges": []}
    assert "ghost" not in server._dashboard.registry


def test_release_instance(client):
    client.post("/tick/network1", json={"genes": [g(1, 2)]})
    _drain(server._stream)

    body = client.delete("/instances/network1").get_json()
    assert body == {"instance": "network1", "released": True}
    assert _drain(server._stream) == [{"type": "release", "instance": "network1"}]
    assert client.delete("/instances/network1").get_json()["released"] is False

    again = client.post("/tick/network1", json={"genes": [g(1, 2)]}).get_json()
    assert again["addNodes"] == ["node1", "node2"]
    assert again["tick"] == 1


def test_dashboard_layout(client):
    graphs = client.get("/dashboard").get_json()["graphs"]
    assert [w["id"] for w in graphs] == ["fitness1", "network1",
                                         "species1", "approximation1"]


def test_cors_headers(client):
    resp = client.get("/dashboard")
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert client.options("/tick/network1").status_code == 200


# ===================================================================
# /stream
# ===================================================================

def test_stream_delivers_queued_payloads_until_done(client):
    client.post("/tick/network1", json={"genes": [g(1, 2)]})
    server._stream.push({"type": "done", "tick": 1})

    events = _events(client.get("/stream"))
    assert [e["type"] for e in events] == ["connected", "delta", "done"]
    assert events[1]["addEdges"][0]["source"] == "node1"


def test_stream_queue_drops_oldest():
    stream = server.StreamRenderAdapter(maxsize=2)
    for i in range(3):
        stream.push({"n": i})
    assert _drain(stream) == [{"n": 1}, {"n": 2}]


# ===================================================================
# Demo driver
# ===================================================================

def test_build_cfg_defaults_and_overrides():
    cfg = server._build_cfg({"maxTicks": 7, "seed": "3", "instances": 2})
    assert cfg["max_ticks"] == 7
    assert cfg["seed"] == 3
    assert cfg["instances"] == 2
    assert cfg["n_inputs"] == server.NUM_INPUTS
    assert server._build_cfg({})["seed"] is None


def test_start_runs_driver_to_completion(client):
    resp = client.post("/start", json={"maxTicks": 5, "tickDelay": 0,
                                       "seed": 1, "instances": 2})
    assert resp.get_json()["status"] == "started"
    server._driver_thread.join(timeout=10)

    status = client.get("/status").get_json()
    assert status["running"] is False
    assert status["tick"] == 5
    assert status["max_ticks"] == 5
    assert status["instances"] == ["network1", "network2"]

    events = _events(client.get("/stream"))
    kinds = [e["type"] for e in events]
    assert kinds[-1] == "done"
    deltas = [e for e in events if e["type"] == "delta"]
    assert len(deltas) == 10
    assert [d["tick"] for d in deltas if d["instance"] == "network1"] == [1, 2, 3, 4, 5]


def test_start_rejects_bad_config(client):
    assert client.post("/start", json={"maxTicks": "lots"}).status_code == 400


def test_stop(client):
    assert client.post("/stop").get_json() == {"status": "stopped"}
    assert server._stop_event.is_set()


# ===================================================================
# Malformed requests
# ===================================================================

@pytest.mark.parametrize("body", [{"genes": 5}, {"genes": {"in_neuron_id": 1}}, [1, 2]])
def test_tick_malformed_body_is_400(client, body):
    resp = client.post("/tick/network1", json=body)
    assert resp.status_code == 400
    assert "error" in resp.get_json()
    assert "network1" not in server._dashboard.registry


def test_telemetry_non_object_body_is_400(client):
    assert client.post("/telemetry/fitness1", json=[4.5]).status_code == 400


def test_tick_on_non_network_graph_is_400(client):
    resp = client.post("/tick/fitness1", json={"genes": [g(1, 2)]})
    assert resp.status_code == 400
    assert "fitness1" not in server._dashboard.registry


def test_stream_push_never_blocks_on_full_queue():
    stream = server.StreamRenderAdapter(maxsize=1)
    for i in range(50):
        stream.push({"n": i})
    assert _drain(stream) == [{"n": 49}]


def test_start_non_object_body_is_400(client):
    assert client.post("/start", json=[5]).status_code == 400
