from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

PROCESSING = "processing"
VALIDATED = "validated"
FAILED = "failed"
UPLOAD_STATUSES = frozenset({PROCESSING, VALIDATED, FAILED})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    text = str(raw)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class UploadRecord:
    """One ingested file submission."""

    upload_id: str
    status: str
    original_name: str
    stored_as: str
    size_bytes: int
    created_at: datetime
    updated_at: datetime
    error: str | None = None
    validation: dict[str, Any] | None = None
    changes_ready: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "uploadId": self.upload_id,
            "status": self.status,
            "originalName": self.original_name,
            "storedAs": self.stored_as,
            "sizeBytes": self.size_bytes,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "error": self.error,
            "validation": self.validation,
            "changesReady": self.changes_ready,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadRecord":
        created_at = parse_timestamp(data["createdAt"])
        status = data.get("status")
        return cls(
            upload_id=str(data["uploadId"]),
            status=status if status in UPLOAD_STATUSES else PROCESSING,
            original_name=str(data.get("originalName") or data.get("storedAs") or ""),
            stored_as=str(data.get("storedAs") or ""),
            size_bytes=int(data.get("sizeBytes") or 0),
            created_at=created_at,
            updated_at=parse_timestamp(data.get("updatedAt") or created_at),
            error=data.get("error"),
            validation=data.get("validation"),
            changes_ready=bool(data.get("changesReady", False)),
        )
