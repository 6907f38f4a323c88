"""Dataset — the canonical, read-only record set built once at load time.

The dataset owns the handle to its re-serialised rendering document.
That handle is an external resource: whoever discards the dataset must
call release() exactly once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from incident_explorer.domain.extent import TimeExtent
from incident_explorer.domain.incident import IncidentRecord

if TYPE_CHECKING:
    from incident_explorer.store.documents import DocumentHandle


class Dataset:
    """Normalised incident records plus their global summaries.

    Invariants:
        - at least one record
        - ``extent`` spans exactly the kept records' timestamps
        - ``categories`` and ``sheets`` are sorted and duplicate-free
    """

    __slots__ = ("records", "extent", "categories", "sheets", "document")

    def __init__(
        self,
        records: Iterable[IncidentRecord],
        document: DocumentHandle,
    ) -> None:
        self.records: tuple[IncidentRecord, ...] = tuple(records)
        if not self.records:
            raise ValueError("a Dataset needs at least one record")
        timestamps = [r.timestamp for r in self.records]
        self.extent = TimeExtent(start=min(timestamps), end=max(timestamps))
        self.categories: tuple[str, ...] = tuple(sorted({r.category for r in self.records}))
        self.sheets: tuple[str, ...] = tuple(sorted({r.sheet for r in self.records}))
        self.document = document

    def __len__(self) -> int:
        return len(self.records)

    @property
    def released(self) -> bool:
        return self.document.released

    def release(self) -> bool:
        """Release the rendering document.  Returns False if already released."""
        return self.document.release()

    def summary(self) -> dict:
        return {
            "record_count": len(self.records),
            "time_start": self.extent.start.isoformat(),
            "time_end": self.extent.end.isoformat(),
            "categories": list(self.categories),
            "sheets": list(self.sheets),
            "document_url": self.document.url,
        }

    def __repr__(self) -> str:
        return (
            f"Dataset(records={len(self.records)}, "
            f"extent={self.extent.start.isoformat()}..{self.extent.end.isoformat()}, "
            f"document={self.document.document_id})"
        )
