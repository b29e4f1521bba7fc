from dataclasses import dataclass, field, replace
from typing import Any

ADDED = "added"
DELETED = "deleted"
MODIFIED = "modified"

MAJOR = "major"
MINOR = "minor"
PATCH = "patch"

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
REVIEW_STATUSES = frozenset({PENDING, APPROVED, REJECTED})


@dataclass(frozen=True)
class Change:
    """One row-level difference between a baseline and a candidate snapshot."""

    id: str
    object: str
    type: str
    classification: str
    category: str
    changes: str
    status: str = PENDING

    def with_status(self, status: str) -> "Change":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "object": self.object,
            "type": self.type,
            "classification": self.classification,
            "category": self.category,
            "changes": self.changes,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Change":
        return cls(
            id=str(data["id"]),
            object=str(data.get("object", "")),
            type=str(data.get("type", "")),
            classification=str(data.get("classification", "")),
            category=str(data.get("category", "")),
            changes=str(data.get("changes", "")),
            status=str(data.get("status") or PENDING),
        )


@dataclass
class ChangeDocument:
    """All changes computed for one upload plus their review decisions."""

    upload_id: str
    baseline_upload_id: str | None = None
    items: list[Change] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "total": len(self.items),
            "added": sum(1 for c in self.items if c.type == ADDED),
            "deleted": sum(1 for c in self.items if c.type == DELETED),
            "modified": sum(1 for c in self.items if c.type == MODIFIED),
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "uploadId": self.upload_id,
            "baselineUploadId": self.baseline_upload_id,
            "counts": self.counts,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeDocument":
        return cls(
            upload_id=str(data["uploadId"]),
            baseline_upload_id=data.get("baselineUploadId"),
            items=[Change.from_dict(item) for item in data.get("items") or []],
        )
