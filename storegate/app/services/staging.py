"""Stage base64 upload payloads as temporary files."""

from __future__ import annotations

import base64
import binascii
import logging
import os
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from storegate.app.services.base import InvalidPayloadError, StagingIOError

logger = logging.getLogger(__name__)


# Line breaks are allowed anywhere in the payload (MIME and `base64` CLI wrapping)
LINE_BREAKS = {ord("\r"): None, ord("\n"): None}


def decode_payload(base64_payload: str) -> bytes:
    try:
        return base64.b64decode(base64_payload.translate(LINE_BREAKS), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidPayloadError(f"payload is not valid base64: {exc}") from exc


def staging_path(filename: str, staging_dir: str | os.PathLike[str] | None = None) -> Path:
    """Build a collision-free path for a staged file.

    Only the base name of ``filename`` is kept so keys like ``a/b.txt`` never
    escape the staging directory.
    """
    directory = Path(staging_dir) if staging_dir else Path(tempfile.gettempdir())
    safe_name = Path(filename.replace("\\", "/")).name or "file"
    return directory / f"{uuid.uuid4().hex}-{safe_name}"


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning(
            "staging_cleanup_failed path=%s",
            path,
            exc_info=True,
            extra={"extra": {"path": str(path)}},
        )


@contextmanager
def staged_payload(
    base64_payload: str,
    filename: str,
    staging_dir: str | os.PathLike[str] | None = None,
) -> Iterator[Path]:
    """Decode ``base64_payload`` into a temporary file and yield its path.

    The file is removed when the block exits, whether it succeeded or raised.
    """
    content = decode_payload(base64_payload)
    path = staging_path(filename, staging_dir)
    try:
        # "xb" refuses to clobber a file this call did not create
        with path.open("xb") as handle:
            handle.write(content)
    except FileExistsError as exc:
        raise StagingIOError(f"staging path already in use: {path}") from exc
    except OSError as exc:
        _remove(path)
        raise StagingIOError(f"failed to stage payload at {path}: {exc}") from exc

    try:
        yield path
    finally:
        _remove(path)
