"""Command line entry point for FedDeep federated training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from feddeep.data import available_datasets
from feddeep.training import pipelines


def _format_result(result) -> str:
    payload = {
        "rounds": result.rounds,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if getattr(result, "summary_path", ""):
        payload["summary"] = result.summary_path
    if getattr(result, "model_path", ""):
        payload["model"] = result.model_path
    if result.history:
        final = result.history[-1]
        payload["final_loss"] = round(float(final.loss), 6)
        if final.accuracy is not None:
            payload["final_accuracy"] = round(float(final.accuracy), 6)
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="xor-fedavg",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument(
        "--dataset",
        choices=available_datasets(),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--train-csv", help="Training CSV for csv_* datasets")
    parser.add_argument("--test-csv", help="Held-out CSV for csv_digits")
    parser.add_argument(
        "--target-col", help="Target column name for csv_classification"
    )
    parser.add_argument("--workers", type=int, help="Number of simulated workers")
    parser.add_argument("--epochs", type=int, help="Number of epochs")
    parser.add_argument("--batch-size", type=int, help="Per-worker batch size")
    parser.add_argument(
        "--rounds-per-epoch", type=int, help="Cap on averaging rounds per epoch"
    )
    parser.add_argument("--lr", type=float, help="Optimizer learning rate")
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed used for dataset splits, initialisation and shuffling",
    )
    parser.add_argument("--run-dir", help="Directory receiving run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write loss.png at the end of the run"
    )
    parser.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Print one line per epoch",
    )
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING)")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = dict(pipelines.read_config_file(args.config))
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    if args.dataset:
        opts: dict = {}
        if args.seed is not None:
            opts["seed"] = int(args.seed)
        if args.dataset == "csv_digits":
            if args.train_csv:
                opts["train_path"] = args.train_csv
            if args.test_csv:
                opts["test_path"] = args.test_csv
        if args.dataset == "csv_classification":
            if args.train_csv:
                opts["csv_path"] = args.train_csv
            if args.target_col:
                opts["target_col"] = args.target_col
        config["data"] = {"name": args.dataset, "options": opts}
        # Widths follow the new dataset; hidden layers are kept.
        config["model"].pop("mode", None)

    federated = config.setdefault("federated", {})
    for key in ("workers", "epochs", "batch_size", "rounds_per_epoch"):
        value = getattr(args, key)
        if value is not None:
            federated[key] = int(value)

    train = config.setdefault("train", {})
    if args.lr is not None:
        train["lr"] = float(args.lr)
    if args.seed is not None:
        train["seed"] = int(args.seed)
    if args.run_dir:
        train["run_dir"] = args.run_dir
    if args.enable_plots:
        train["enable_plots"] = True
    if args.progress is not None:
        train["progress"] = bool(args.progress)
    if args.log_level:
        train["log_level"] = args.log_level

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
