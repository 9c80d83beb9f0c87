import logging
import os
import shutil
import tempfile
import unicodedata
from pathlib import Path
from typing import BinaryIO

from linkdrop.errors import (
    EnvironmentFailure,
    InvalidIdentifier,
    StoredFileNotFound,
    UploadTooLarge,
)
from linkdrop.files.file_id import MAX_ID_LENGTH, decode_name, generate, validate

logger = logging.getLogger(__name__)

MAX_COLLISION_RETRIES = 5
CHUNK_SIZE = 1024 * 1024

# Temporary uploads contain "." and "-", so they never validate as identifiers
TMP_PREFIX = ".upload-"


class Storage:
    """Flat upload directory keyed by file identifier."""

    def __init__(self, upload_dir: Path | str, max_id_length: int = MAX_ID_LENGTH):
        self.upload_dir = Path(upload_dir)
        self.max_id_length = max_id_length

    def ensure_dir(self) -> Path:
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EnvironmentFailure(f"could not create upload dir {self.upload_dir}: {e}") from e
        return self.upload_dir

    def path_for(self, file_id: str) -> Path:
        """Path of the stored file named ``file_id`` inside the upload dir."""
        if validate(file_id, self.max_id_length) is None:
            raise InvalidIdentifier(f"invalid file id: {file_id!r}")
        return self.ensure_dir() / file_id

    def recover_original_name(self, stored_path: Path | str) -> str | None:
        """Decode the original filename from a stored file's name.

        Returns None when the name does not decode to text that can be put
        in a response header.
        """
        raw = decode_name(Path(stored_path).name)
        if raw is None:
            return None
        try:
            name = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
        if any(unicodedata.category(c) == "Cc" for c in name):
            return None
        return name

    def persist(
        self,
        original_filename: bytes | str,
        stream: BinaryIO,
        max_bytes: int | None = None,
    ) -> str:
        """Store ``stream`` under a fresh identifier and return the identifier.

        The content is written to a temporary file first and only linked
        into place once complete. An existing file is never replaced: on a
        suffix collision a new identifier is generated.
        """
        file_id = generate(original_filename, max_length=self.max_id_length)
        upload_dir = self.ensure_dir()

        try:
            tmp = tempfile.NamedTemporaryFile("wb", prefix=TMP_PREFIX, dir=upload_dir, delete=False)
        except OSError as e:
            raise EnvironmentFailure(f"could not write to upload dir {upload_dir}: {e}") from e

        tmp_path = Path(tmp.name)
        try:
            with tmp:
                _copy_limited(stream, tmp, max_bytes)
                tmp.flush()
                os.fsync(tmp.fileno())

            for attempt in range(MAX_COLLISION_RETRIES):
                try:
                    os.link(tmp_path, upload_dir / file_id)
                    return file_id
                except FileExistsError:
                    logger.warning(f"File id collision (attempt {attempt + 1}), regenerating")
                    file_id = generate(original_filename, max_length=self.max_id_length)
            raise EnvironmentFailure(
                f"could not find a free file id after {MAX_COLLISION_RETRIES} attempts"
            )
        except OSError as e:
            raise EnvironmentFailure(f"could not store upload: {e}") from e
        finally:
            tmp_path.unlink(missing_ok=True)

    def resolve(self, candidate: str) -> tuple[Path, str]:
        """Map a client supplied id to ``(path, original_name)``."""
        path = self.path_for(candidate)
        if not path.is_file():
            raise StoredFileNotFound(candidate)
        name = self.recover_original_name(path)
        if name is None:
            raise InvalidIdentifier(f"undecodable file name in id: {candidate!r}")
        return path, name


def _copy_limited(src: BinaryIO, dst: BinaryIO, max_bytes: int | None) -> int:
    if max_bytes is None:
        shutil.copyfileobj(src, dst, CHUNK_SIZE)
        return dst.tell()

    written = 0
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            break
        written += len(chunk)
        if written > max_bytes:
            raise UploadTooLarge(f"upload exceeds {max_bytes} bytes")
        dst.write(chunk)
    return written
