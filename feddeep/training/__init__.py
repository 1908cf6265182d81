"""Local training: optimizers, the per-worker trainer, metrics and pipelines."""
