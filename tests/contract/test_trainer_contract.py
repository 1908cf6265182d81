import csv
import json
from pathlib import Path

import pytest

from feddeep.core.parameters import ParameterStore
from feddeep.training import pipelines


def _config(run_dir, **train):
    config = {
        "data": {"name": "blobs", "options": {"n_per_class": 20, "seed": 0}},
        "model": {
            "hidden": [5],
            "activation": "relu",
            "weight": {"kind": "normal", "mean": 0.1, "stddev": 0.6},
        },
        "federated": {"workers": 2, "batch_size": 8, "epochs": 3},
        "train": {
            "optimizer": "adam",
            "lr": 0.05,
            "seed": 11,
            "run_dir": str(run_dir),
            "progress": False,
        },
    }
    config["train"].update(train)
    return config


def test_pipeline_produces_artifacts(tmp_path):
    config = _config(tmp_path / "run")
    result = pipelines.run_pipeline(config)

    assert result.rounds == 3 * 3
    assert len(result.history) == 3

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 11
    assert manifest["dataset"]["type"] == "blobs"
    assert manifest["rounds"] == result.rounds
    assert "numpy" in manifest["environment"]

    metrics = [
        json.loads(line)
        for line in Path(result.metrics_path).read_text().splitlines()
        if line
    ]
    assert [entry["epoch"] for entry in metrics] == [1, 2, 3]
    first = metrics[0]
    assert first["split"] == "test"
    assert first["seed"] == 11
    assert "sha" in first
    assert all({"loss", "accuracy", "elapsed"} <= set(entry) for entry in metrics)

    with (tmp_path / "run" / "metrics.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["epoch"] for row in rows] == ["1", "2", "3"]

    summary = json.loads(Path(result.summary_path).read_text())
    assert summary["records"] == 3
    assert set(summary["metrics"]) == {"loss", "accuracy"}

    store = ParameterStore.load(result.model_path)
    assert store.config.layout == (5, 3)
    assert store.config.mode.value == "multiclass"
    assert json.loads((tmp_path / "run" / "config.json").read_text()) == config
    assert (tmp_path / "run" / "run.log").exists()


def test_pipeline_determinism(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path / "a"))
    second = pipelines.run_pipeline(_config(tmp_path / "b"))

    assert Path(first.summary_path).read_bytes() == Path(second.summary_path).read_bytes()
    assert Path(first.model_path).read_bytes() == Path(second.model_path).read_bytes()
    assert [r.loss for r in first.history] == [r.loss for r in second.history]


def test_pipeline_writes_plot_when_enabled(tmp_path):
    result = pipelines.run_pipeline(_config(tmp_path / "plots", enable_plots=True))
    assert result.rounds > 0
    assert (tmp_path / "plots" / "loss.png").exists()


def test_pipeline_rejects_incomplete_configs(tmp_path):
    config = _config(tmp_path / "bad")
    del config["model"]
    with pytest.raises(KeyError):
        pipelines.run_pipeline(config)

    config = _config(tmp_path / "bad")
    config["model"]["d_in"] = 7
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)


def test_presets_are_complete():
    available = pipelines.presets()
    assert {"xor-fedavg", "blobs-fedavg", "digits-csv-fixture", "mnist-csv"} <= set(available)
    for name, preset in available.items():
        assert {"data", "model", "train"} <= set(preset), name

    mnist = pipelines.load_preset("mnist-csv")
    assert mnist["federated"]["workers"] == 10
    assert mnist["federated"]["rounds_per_epoch"] == 16
    assert mnist["train"]["epsilon"] == pytest.approx(1e-8)

    mutated = pipelines.load_preset("xor-fedavg")
    mutated["federated"]["workers"] = 99
    assert pipelines.load_preset("xor-fedavg")["federated"]["workers"] == 2
    with pytest.raises(KeyError):
        pipelines.load_preset("missing")


def test_read_config_file(tmp_path):
    yaml_path = tmp_path / "override.yaml"
    yaml_path.write_text("federated:\n  workers: 3\n")
    assert pipelines.read_config_file(yaml_path) == {"federated": {"workers": 3}}
    json_path = tmp_path / "override.json"
    json_path.write_text('{"train": {"lr": 0.2}}')
    assert pipelines.read_config_file(json_path) == {"train": {"lr": 0.2}}
    with pytest.raises(ValueError):
        pipelines.read_config_file(tmp_path / "override.toml")


def test_pipeline_prints_model_description(tmp_path, capsys):
    pipelines.run_pipeline(_config(tmp_path / "run", progress=True))
    out = capsys.readouterr().out
    assert "Dimensions    : [2, 5, 3] (with bias)" in out
    assert "Activation    : relu -> softmax" in out
    assert "Loss          : crossentropy" in out
    assert "Parameters    : 33" in out
    epoch_lines = [line for line in out.splitlines() if line.startswith(("1\t", "2\t", "3\t"))]
    assert len(epoch_lines) == 3
