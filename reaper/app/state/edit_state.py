from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class EditKind(Enum):
    CROP = "crop"
    RESIZE = "resize"
    CONVERT = "convert"
    MERGE = "merge"


class EditStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class EditRequest:
    """One submitted edit operation and its outcome.

    `id` is unique per dispatcher; resolutions carrying any other id are stale.
    """

    id: int
    kind: EditKind
    params: dict[str, Any] = field(default_factory=dict)
    status: EditStatus = EditStatus.PENDING
    artifact: Any = None
    error: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is EditStatus.PENDING

    def succeeded(self, artifact: Any) -> EditRequest:
        return replace(self, status=EditStatus.SUCCEEDED, artifact=artifact, error=None)

    def failed(self, error: str) -> EditRequest:
        return replace(self, status=EditStatus.FAILED, artifact=None, error=error)
