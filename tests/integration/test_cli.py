import json
from pathlib import Path

import pytest

from cli.main import main


def test_cli_xor_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "xor-fedavg", "--epochs", "5", "--no-progress"])
    run_dir = Path("runs/xor-fedavg")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    assert (run_dir / "model.json").exists()

    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["rounds"] == 5
    assert "final_accuracy" in payload


def test_cli_overrides_and_dump_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    override = tmp_path / "override.yaml"
    override.write_text("federated:\n  batch_size: 4\n")
    dumped = tmp_path / "resolved.json"
    main(
        [
            "--preset",
            "blobs-fedavg",
            "--config",
            str(override),
            "--workers",
            "3",
            "--epochs",
            "1",
            "--seed",
            "5",
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(dumped),
        ]
    )
    config = json.loads(dumped.read_text())
    assert config["federated"]["workers"] == 3
    assert config["federated"]["batch_size"] == 4
    assert config["train"]["seed"] == 5
    assert (tmp_path / "run" / "summary.json").exists()


def test_cli_dataset_switch_uses_csv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    train = tmp_path / "train.csv"
    train.write_text("".join(f"{i % 2},{(i * 37) % 256},{(i * 91) % 256}\n" for i in range(12)))
    main(
        [
            "--preset",
            "xor-fedavg",
            "--dataset",
            "csv_digits",
            "--train-csv",
            str(train),
            "--epochs",
            "2",
            "--run-dir",
            str(tmp_path / "csv-run"),
        ]
    )
    manifest = json.loads((tmp_path / "csv-run" / "manifest.json").read_text())
    assert manifest["dataset"]["path"] == str(train)
    assert manifest["config"]["data"]["name"] == "csv_digits"


def test_cli_lists_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert "xor-fedavg" in capsys.readouterr().out.split()
