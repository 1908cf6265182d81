"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Collect per-epoch loss/accuracy and optionally write ``loss.png``."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float | None]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._history.append((epoch, float(metrics.get("loss", 0.0)), metrics.get("accuracy")))

    __call__ = on_epoch

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs = [item[0] for item in self._history]
        losses = [item[1] for item in self._history]
        fig, ax = plt.subplots()
        ax.plot(epochs, losses, label="held-out loss")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Loss")
        accuracies = [item[2] for item in self._history]
        if all(acc is not None for acc in accuracies):
            twin = ax.twinx()
            twin.plot(epochs, accuracies, color="tab:orange", label="accuracy")
            twin.set_ylabel("Accuracy")
            twin.set_ylim(0.0, 1.0)
        ax.set_title("Federated training")
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path


__all__ = ["PlotAdapter"]
