"""
Upload router.

Endpoints
---------
POST  /uploads                               Submit a workbook (.xlsx) or markup (.xml) file.
GET   /uploads                               Most recent uploads first.
GET   /uploads/{upload_id}                   One upload record.
GET   /uploads/{upload_id}/changes           Change document of an upload.
PATCH /uploads/{upload_id}/changes/{change}  Set the review decision of one change.
GET   /uploads/{upload_id}/snapshot          Extracted snapshot.
GET   /uploads/{upload_id}/sheets            Sheet names with row counts.
GET   /uploads/{upload_id}/sheets/{sheet}    Paginated rows of one sheet.
"""

import re
from uuid import uuid4

from fastapi import APIRouter, Body, File, HTTPException, Query, UploadFile, status

from catalog_diff.api.schemas import ChangeDecision
from catalog_diff.extraction.exceptions import UnsupportedFileTypeError
from catalog_diff.extraction.factory import accepted_extension
from catalog_diff.extraction.models import Snapshot
from catalog_diff.logging.logger import Log
from catalog_diff.services import Services
from catalog_diff.storage.exceptions import (
    ChangeDocumentNotFoundError,
    ChangeNotFoundError,
    InvalidChangeStatusError,
    SnapshotNotFoundError,
    StorageError,
    UploadTooLargeError,
)
from catalog_diff.storage.upload_files import save_upload_stream

DEFAULT_SHEET_LIMIT = 500
MAX_SHEET_LIMIT = 5000

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(raw: str | None, default: int) -> int:
    # Leading integer prefix wins ("12abc" is 12); anything else falls back.
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else default


def clamp_page(offset: str | None, limit: str | None) -> tuple[int, int]:
    """Parse raw offset and limit query values into a valid page window."""
    parsed_offset = _parse_int(offset, 0)
    parsed_limit = _parse_int(limit, DEFAULT_SHEET_LIMIT)
    return max(0, parsed_offset), max(1, min(parsed_limit, MAX_SHEET_LIMIT))


def create_uploads_router(*, services: Services) -> APIRouter:
    router = APIRouter(tags=["Uploads"])
    settings = services.settings
    registry = services.registry

    def load_snapshot(upload_id: str) -> Snapshot:
        try:
            return services.snapshot_repo.load(upload_id)
        except SnapshotNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="No snapshot computed yet"
            ) from exc
        except StorageError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
            ) from exc

    @router.post("/uploads")
    def submit_upload(file: UploadFile = File(...)) -> dict:
        try:
            extension = accepted_extension(file.filename or "")
        except UnsupportedFileTypeError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        upload_id = str(uuid4())
        try:
            stored = save_upload_stream(
                file.file,
                upload_id=upload_id,
                extension=extension,
                uploads_dir=services.paths.uploads_dir,
                max_bytes=settings.max_upload_bytes,
            )
        except UploadTooLargeError as exc:
            Log.warning(f"Rejected '{file.filename}': {exc}")
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)
            ) from exc

        record = registry.create(
            upload_id=upload_id,
            original_name=file.filename or stored.stored_as,
            stored_as=stored.stored_as,
            size_bytes=stored.size_bytes,
        )
        services.runner.run(upload_id, stored.path)
        return record.to_dict()

    @router.get("/uploads")
    def list_uploads() -> list[dict]:
        return [record.to_dict() for record in registry.list_recent()]

    @router.get("/uploads/{upload_id}")
    def get_upload(upload_id: str) -> dict:
        record = registry.get(upload_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        return record.to_dict()

    @router.get("/uploads/{upload_id}/changes")
    def get_changes(upload_id: str) -> dict:
        try:
            return services.change_repo.read(upload_id).to_dict()
        except ChangeDocumentNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="No changes computed yet"
            ) from exc
        except StorageError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
            ) from exc

    @router.patch("/uploads/{upload_id}/changes/{change_id:path}")
    def update_change_status(
        upload_id: str,
        change_id: str,
        decision: ChangeDecision | None = Body(default=None),
    ) -> dict:
        new_status = decision.status if decision is not None else None
        try:
            services.change_repo.update_item_status(upload_id, change_id, new_status)
        except InvalidChangeStatusError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except ChangeDocumentNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="No changes computed yet"
            ) from exc
        except ChangeNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        Log.info(f"[{upload_id}] change '{change_id}' set to {new_status}")
        return {"ok": True}

    @router.get("/uploads/{upload_id}/snapshot")
    def get_snapshot(upload_id: str) -> dict:
        return load_snapshot(upload_id).to_dict()

    @router.get("/uploads/{upload_id}/sheets")
    def list_sheets(upload_id: str) -> dict:
        snapshot = load_snapshot(upload_id)
        return {"uploadId": upload_id, "sheets": snapshot.sheet_summaries()}

    @router.get("/uploads/{upload_id}/sheets/{sheet_name}")
    def get_sheet_rows(
        upload_id: str,
        sheet_name: str,
        offset: str | None = Query(None),
        limit: str | None = Query(None),
    ) -> dict:
        rows = load_snapshot(upload_id).sheets.get(sheet_name)
        if rows is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"Sheet not found: {sheet_name}"
            )
        start, size = clamp_page(offset, limit)
        return {
            "uploadId": upload_id,
            "sheetName": sheet_name,
            "totalRows": len(rows),
            "offset": start,
            "limit": size,
            "rows": rows[start : start + size],
        }

    return router
