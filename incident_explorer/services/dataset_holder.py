"""DatasetHolder — owns the loaded Dataset and its rendering document.

Lifecycle:  pending → ready | failed
    - pending: nothing loaded yet; no state, no derived views
    - ready:   a dataset is available
    - failed:  the last load raised; the error is kept for the API layer

Loads are serialised with an asyncio.Lock so a second fetch never starts
while one is in flight.  Whatever dataset is replaced or abandoned has
its document released exactly once, on success and on failure alike.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from incident_explorer.domain.dataset import Dataset
from incident_explorer.ingest.normalizer import FeatureNormalizer

logger = logging.getLogger(__name__)

RawLoader = Callable[[], Awaitable[Any]]


class DatasetStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class DatasetHolder:
    """Loads, replaces and discards the application's Dataset.

    Args:
        loader: Coroutine factory returning the raw feature collection.
        normalizer: Turns the raw collection into a Dataset.
    """

    def __init__(self, loader: RawLoader, normalizer: FeatureNormalizer) -> None:
        self._loader = loader
        self._normalizer = normalizer
        self._lock = asyncio.Lock()
        self._dataset: Dataset | None = None
        self._failure: Exception | None = None
        self._generation = 0

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def status(self) -> DatasetStatus:
        if self._dataset is not None:
            return DatasetStatus.READY
        if self._failure is not None:
            return DatasetStatus.FAILED
        return DatasetStatus.PENDING

    @property
    def dataset(self) -> Dataset | None:
        return self._dataset

    @property
    def failure(self) -> Exception | None:
        return self._failure

    @property
    def generation(self) -> int:
        """Incremented each time a new dataset is installed."""
        return self._generation

    async def load(self) -> Dataset:
        """Fetch and normalise, then install the result.

        A failed load is terminal for the current dataset: it is released
        and the holder reports ``failed`` until a later load succeeds.

        Raises:
            FetchFailure, EmptyDatasetError, NoValidFeaturesError: as
                raised by the loader and normaliser.  Never retried.
        """
        async with self._lock:
            try:
                raw = await self._loader()
                dataset = self._normalizer.normalize(raw)
            except Exception as exc:
                logger.error("Dataset load failed: %s", exc)
                self._discard()
                self._failure = exc
                raise

            previous = self._dataset
            self._dataset = dataset
            self._failure = None
            self._generation += 1
            if previous is not None:
                previous.release()
            logger.info("Installed dataset generation %d: %r", self._generation, dataset)
            return dataset

    async def close(self) -> None:
        """Release the current dataset, if any."""
        async with self._lock:
            self._discard()

    # ── Internals ────────────────────────────────────────────────────────

    def _discard(self) -> None:
        """Must be called while holding self._lock."""
        if self._dataset is not None:
            self._dataset.release()
            self._dataset = None
