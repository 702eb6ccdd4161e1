import csv
import os

from dashboard import default_dashboard
from main import main
from visualizer import (CsvRenderAdapter, DiagramRenderAdapter, ensure_dirs,
                        save_topology_diagram)


def g(src, dst, weight=0.5, enabled=True):
    return {"in_neuron_id": src, "out_neuron_id": dst,
            "weight": weight, "enabled": enabled}


def test_csv_log_one_row_per_delta(tmp_path):
    dash = default_dashboard([CsvRenderAdapter(str(tmp_path))])
    dash.network("network1", [g(1, 2)])
    dash.network("network1", [g(1, 2), g(2, 3)])
    dash.network("network1", [])

    with open(tmp_path / "topology_log.csv", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["tick"] for r in rows] == ["1", "2", "3"]
    assert rows[0]["add_nodes"] == "2"
    assert rows[1]["update_edges"] == "1"
    assert rows[2]["remove_nodes"] == "3"
    assert rows[2]["remove_edges"] == "2"


def test_csv_log_can_be_disabled(tmp_path):
    dash = default_dashboard([CsvRenderAdapter(str(tmp_path), enabled=False)])
    dash.network("network1", [g(1, 2)])
    assert not os.path.exists(tmp_path / "topology_log.csv")


def test_diagram_saved_on_interval(tmp_path):
    ensure_dirs(str(tmp_path))
    diagrams = DiagramRenderAdapter(str(tmp_path), interval=2)
    dash = default_dashboard([diagrams])
    for _ in range(4):
        dash.network("network1", [g(1, 2, 0.4), g(2, 3, -0.8)])

    assert [os.path.basename(p) for p in diagrams.saved] == [
        "network1_tick_000002.png", "network1_tick_000004.png"]
    assert all(os.path.isfile(p) for p in diagrams.saved)


def test_empty_topology_draws_nothing(tmp_path):
    assert save_topology_diagram([], [], "network1", 1, str(tmp_path)) is None


def test_offline_run_writes_outputs(tmp_path):
    dash = main(["--ticks", "20", "--seed", "5", "--diagram_interval", "10",
                 "--outdir", str(tmp_path)])
    files = os.listdir(tmp_path / "network")
    assert files
    assert all(f.startswith("network1_tick_") for f in files)
    with open(tmp_path / "topology_log.csv", newline="") as f:
        assert len(list(csv.DictReader(f))) == 20
    assert dash.registry.snapshot("network1").ticks == 20
