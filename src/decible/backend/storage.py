"""
Object keys and uploads for generated audio.

Every stored file lives under the owning user's id:

    {user_id}/{epoch_ms}-{random7}.mp3

The random suffix is seven lowercase base-36 characters, enough to keep two
uploads in the same millisecond apart.
"""
from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from typing import Callable, Optional

from decible.backend.client import BackendClient, BackendError
from decible.core.logging import error, get_logger, verbose
from decible.core.metrics import metrics
from decible.services.errors import StorageError

_LOG = get_logger("decible.storage")

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 7


def random_suffix(length: int = _SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def make_object_key(
    user_id: str,
    extension: str = "mp3",
    now_ms: Optional[int] = None,
    suffix: Optional[Callable[[], str]] = None,
) -> str:
    """
    Build a storage key namespaced by ``user_id``.

    Raises:
        StorageError: ``user_id`` is empty or contains a path separator.
    """
    if not user_id or "/" in user_id:
        error(_LOG, "invalid_object_owner", user=repr(user_id))
        raise StorageError(details={"user_id": user_id})
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    tail = (suffix or random_suffix)()
    return f"{user_id}/{stamp}-{tail}.{extension}"


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    key: str
    public_url: str


def upload_audio(
    backend: BackendClient,
    bucket: str,
    user_id: str,
    audio: bytes,
    content_type: str = "audio/mpeg",
) -> StoredObject:
    """
    Upload generated audio and return its public location.

    Raises:
        StorageError: The upload failed; the backend detail is logged.
    """
    key = make_object_key(user_id)
    try:
        backend.upload(bucket, key, audio, content_type=content_type)
    except BackendError as exc:
        metrics.record_upstream_failure("storage")
        error(_LOG, "upload_failed", bucket=bucket, key=key, status=exc.status, body=exc.body)
        raise StorageError(details={"bucket": bucket, "status": exc.status}) from exc

    verbose(_LOG, "uploaded", bucket=bucket, key=key, bytes=len(audio))
    return StoredObject(bucket=bucket, key=key, public_url=backend.public_url(bucket, key))
