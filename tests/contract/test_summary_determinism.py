import json

from feddeep.reporting.summary import build_summary, write_summary


def test_summary_ignores_elapsed_and_picks_best_epoch(tmp_path):
    metrics = tmp_path / "metrics.jsonl"
    records = [
        {"epoch": 1, "split": "test", "seed": 0, "loss": 0.9, "accuracy": 0.5, "elapsed": 0.1},
        {"epoch": 2, "split": "test", "seed": 0, "loss": 0.4, "accuracy": 0.75, "elapsed": 0.2},
        {"epoch": 3, "split": "test", "seed": 0, "loss": 0.6, "accuracy": 0.7, "elapsed": 0.3},
    ]
    metrics.write_text("\n".join(json.dumps(r) for r in records) + "\n")

    out_a = write_summary(metrics, tmp_path / "a.json")
    slower = [dict(r, elapsed=r["elapsed"] * 10) for r in records]
    metrics.write_text("\n".join(json.dumps(r) for r in slower) + "\n")
    out_b = write_summary(metrics, tmp_path / "b.json")

    assert (tmp_path / "a.json").read_bytes() == (tmp_path / "b.json").read_bytes()
    summary = json.loads((tmp_path / "a.json").read_text())
    assert out_a.endswith("a.json") and out_b.endswith("b.json")
    assert summary["best_epoch"] == 2
    assert summary["metrics"]["loss"]["last"] == 0.6
    assert summary["metrics"]["accuracy"]["max"] == 0.75
    assert "elapsed" not in summary["metrics"]


def test_empty_summary():
    summary = build_summary([])
    assert summary["records"] == 0
    assert summary["best_epoch"] is None
    assert summary["metrics"] == {}
