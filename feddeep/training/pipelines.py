"""Pipeline assembly: config mapping -> dataset, network, federated run, artifacts."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping

from ..core.config import Config, Mode
from ..core.initializers import initializer_from_dict
from ..core.types import RunResult
from ..data import registry
from ..data.utils import seed_everything
from ..federated.orchestrator import FederatedAveraging, FederatedSettings
from ..reporting.artifacts import write_manifest
from ..reporting.log import get_logger, init_logging
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.progress import ProgressPrinter, print_startup_summary
from ..reporting.summary import write_summary

logger = get_logger("pipeline")

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-fedavg": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "hidden": [3],
            "activation": "tanh",
            "mode": "binary",
            "bias": True,
            "weight": {"kind": "normal", "mean": 0.0, "stddev": 1.0},
        },
        "federated": {"workers": 2, "batch_size": 2, "epochs": 200, "local_steps": 5},
        "train": {
            "optimizer": "sgd",
            "lr": 0.5,
            "seed": 0,
            "run_dir": "runs/xor-fedavg",
            "enable_plots": False,
            "progress": False,
        },
    },
    "blobs-fedavg": {
        "data": {
            "name": "blobs",
            "options": {"classes": 3, "n_per_class": 60, "features": 2, "seed": 0},
        },
        "model": {
            "hidden": [8],
            "activation": "relu",
            "mode": "multiclass",
            "bias": True,
            "weight": {"kind": "normal", "mean": 0.1, "stddev": 0.6},
        },
        "federated": {"workers": 4, "batch_size": 8, "epochs": 5, "local_steps": 1},
        "train": {
            "optimizer": "adam",
            "lr": 0.05,
            "seed": 7,
            "run_dir": "runs/blobs-fedavg",
            "enable_plots": False,
        },
    },
    "digits-csv-fixture": {
        "data": {"name": "csv_digits", "options": {"test_split": 0.2, "seed": 0}},
        "model": {
            "hidden": [16],
            "activation": "relu",
            "mode": "multiclass",
            "bias": True,
            "weight": {"kind": "normal", "mean": 0.1, "stddev": 0.6},
        },
        "federated": {"workers": 3, "batch_size": 4, "epochs": 3, "local_steps": 1},
        "train": {
            "optimizer": "adam",
            "lr": 0.05,
            "seed": 1,
            "run_dir": "runs/digits-csv-fixture",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None
_REQUIRED_SECTIONS = {"data", "model", "train"}
_OPTIMIZER_KEYS = ("lr", "beta1", "beta2", "epsilon", "momentum", "decay", "nesterov")


def read_config_file(path: str | Path) -> Mapping[str, object]:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    elif suffix == ".json":
        data = json.loads(path.read_text() or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: "
                        f"{', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


# ----------------------------------------------------------------------
# Builders


def build_network_config(
    model_cfg: Mapping[str, object], data_spec: registry.DataSpec
) -> Config:
    """Network config for ``data_spec``: hidden widths then the target width."""

    layout = [int(h) for h in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    layout.append(int(model_cfg.get("d_out", data_spec.d_out)))  # type: ignore[arg-type]
    d_in = int(model_cfg.get("d_in", data_spec.d_in))  # type: ignore[arg-type]
    if d_in != data_spec.d_in:
        raise ValueError(f"Configured d_in={d_in} but dataset provides {data_spec.d_in}")
    if layout[-1] != data_spec.d_out:
        raise ValueError(f"Configured d_out={layout[-1]} but dataset provides {data_spec.d_out}")
    return Config(
        inputs=d_in,
        layout=layout,
        activation=str(model_cfg.get("activation", "sigmoid")),
        mode=str(model_cfg.get("mode", _default_mode(data_spec.task_type))),
        weight=initializer_from_dict(model_cfg.get("weight") or {}),  # type: ignore[arg-type]
        bias=bool(model_cfg.get("bias", True)),
        loss=model_cfg.get("loss"),  # type: ignore[arg-type]
    )


def build_settings(
    fed_cfg: Mapping[str, object], train_cfg: Mapping[str, object]
) -> FederatedSettings:
    params = {key: train_cfg[key] for key in _OPTIMIZER_KEYS if key in train_cfg}
    settings = dict(fed_cfg)
    settings.setdefault("optimizer", str(train_cfg.get("optimizer", "adam")).lower())
    settings.setdefault("optimizer_params", params or {"lr": 0.001})
    settings.setdefault("seed", int(train_cfg.get("seed", 0)))  # type: ignore[arg-type]
    return FederatedSettings.from_mapping(settings)


def _default_mode(task_type: str) -> str:
    return {
        "multiclass": Mode.MULTICLASS.value,
        "binary": Mode.BINARY.value,
        "regression": Mode.REGRESSION.value,
    }.get(task_type, Mode.DEFAULT.value)


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object]) -> Mapping[str, object]:
    return json.loads(json.dumps(config))


# ----------------------------------------------------------------------
# Entry point


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    fed_cfg = dict(config.get("federated", {}))  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    seed = int(train_cfg.get("seed", 0))
    rng = seed_everything(seed)

    dataset = registry.get_dataset(str(data_cfg["name"]), **data_cfg.get("options", {}))
    net_config = build_network_config(model_cfg, dataset.data_spec)
    settings = build_settings(fed_cfg, train_cfg)

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)
    init_logging(str(train_cfg.get("log_level", "WARNING")), run_dir / "run.log")

    metrics_sink = JsonlSink(run_dir / "metrics.jsonl", split="test", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="test")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    callbacks: list[object] = [metrics_sink, csv_sink, plots]
    if bool(train_cfg.get("progress", True)):
        callbacks.append(ProgressPrinter())

    orchestrator = FederatedAveraging(net_config, settings, callbacks=callbacks)
    print_startup_summary(
        orchestrator.model.describe(),
        dataset_name=dataset.name,
        optimizer=settings.optimizer,
        workers=settings.workers,
        batch_size=settings.batch_size,
        epochs=settings.epochs,
        param_count=orchestrator.model.parameter_count(),
    )
    # Shards are dealt round-robin, so the caller shuffles once up front.
    train = dataset.train.shuffle(rng) if train_cfg.get("shuffle", True) else dataset.train
    result = orchestrator.run(train, dataset.test if len(dataset.test) else None)
    plots.close()

    model_path = result.parameters.save(run_dir / str(train_cfg.get("model_file", "model.json")))
    safe = _safe_config(config)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe,
        dataset_provenance=dataset.provenance,
        rounds=result.rounds,
    )
    summary_path = write_summary(metrics_sink.path, run_dir / "summary.json")
    (run_dir / "config.json").write_text(json.dumps(safe, indent=2))
    logger.info("run complete: %d rounds, artifacts in %s", result.rounds, run_dir)

    return RunResult(
        rounds=result.rounds,
        metrics_path=str(metrics_sink.path),
        manifest_path=manifest,
        summary_path=summary_path,
        model_path=model_path,
        history=list(result.history),
    )


__all__ = [
    "build_network_config",
    "build_settings",
    "load_preset",
    "presets",
    "read_config_file",
    "run_pipeline",
]
