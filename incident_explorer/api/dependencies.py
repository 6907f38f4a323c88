"""Shared helpers for routes that need a loaded dataset."""

from __future__ import annotations

from fastapi import HTTPException

from incident_explorer.domain.dataset import Dataset
from incident_explorer.services.dataset_holder import DatasetHolder, DatasetStatus


def require_dataset(holder: DatasetHolder) -> Dataset:
    """Return the loaded dataset or raise 503 describing why there is none."""
    dataset = holder.dataset
    if dataset is not None:
        return dataset
    if holder.status == DatasetStatus.FAILED:
        raise HTTPException(status_code=503, detail=f"Dataset failed to load: {holder.failure}")
    raise HTTPException(status_code=503, detail="Dataset is still loading")
