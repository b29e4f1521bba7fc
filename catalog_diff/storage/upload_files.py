from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from catalog_diff.storage.exceptions import UploadTooLargeError

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredUpload:
    path: Path
    stored_as: str
    size_bytes: int


def save_upload_stream(
    source: BinaryIO,
    *,
    upload_id: str,
    extension: str,
    uploads_dir: Path,
    max_bytes: int,
) -> StoredUpload:
    """Copy an uploaded stream to ``uploads_dir/<upload_id><extension>``.

    The partial file is removed when the stream exceeds ``max_bytes``.

    Raises:
        UploadTooLargeError: if more than ``max_bytes`` are read.
    """
    stored_as = f"{upload_id}{extension}"
    destination = uploads_dir / stored_as
    uploads_dir.mkdir(parents=True, exist_ok=True)

    size = 0
    try:
        with destination.open("wb") as out:
            while chunk := source.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise UploadTooLargeError(f"File exceeds the {max_bytes} byte limit")
                out.write(chunk)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    return StoredUpload(path=destination, stored_as=stored_as, size_bytes=size)
