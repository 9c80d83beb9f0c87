import logging
import re
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, PlainTextResponse

from linkdrop.config import settings
from linkdrop.errors import (
    EnvironmentFailure,
    FilenameTooLong,
    InvalidIdentifier,
    StoredFileNotFound,
    UploadTooLarge,
)
from linkdrop.files.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter(tags=["files"])

# Anything outside printable ASCII, plus the quoted-string specials
_UNSAFE_HEADER_CHARS = re.compile(r'[^\x20-\x7e]|["\\]')


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def content_disposition(filename: str) -> str:
    """Attachment header naming ``filename``.

    Names that cannot be sent verbatim in a quoted-string get an ASCII
    fallback plus an RFC 5987 ``filename*`` parameter with the exact name.
    """
    if not _UNSAFE_HEADER_CHARS.search(filename):
        return f'attachment; filename="{filename}"'
    fallback = _UNSAFE_HEADER_CHARS.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.post("/", status_code=201, response_class=PlainTextResponse)
async def upload(
    request: Request,
    file: UploadFile = File(...),
    storage: Storage = Depends(get_storage),
):
    if not file.filename:
        raise HTTPException(400, "Invalid file name.")

    try:
        file_id = await run_in_threadpool(
            storage.persist, file.filename, file.file, settings.upload_limit_bytes
        )
    except FilenameTooLong:
        logger.info(f"Rejected upload with {len(file.filename)} character file name")
        raise HTTPException(400, "File name too long.")
    except UploadTooLarge:
        raise HTTPException(413, f"Upload exceeds {settings.upload_limit_mb} MiB.")
    except EnvironmentFailure as e:
        logger.error(f"Upload failed: {e}")
        raise HTTPException(500, "Could not store file.")

    logger.info(f"Stored {file.filename!r} as {file_id}")
    return str(request.url_for("retrieve", file_id=file_id))


@router.get("/{file_id}", name="retrieve")
async def retrieve(file_id: str, storage: Storage = Depends(get_storage)):
    try:
        path, name = await run_in_threadpool(storage.resolve, file_id)
    except InvalidIdentifier:
        logger.info(f"Rejected file id {file_id[:64]!r}")
        raise HTTPException(400, "Invalid file id.")
    except StoredFileNotFound:
        raise HTTPException(404, "File not found.")
    except EnvironmentFailure as e:
        logger.error(f"Download failed: {e}")
        raise HTTPException(500, "Could not read file.")

    return FileResponse(
        path,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(name)},
    )
