"""Backend-as-a-service access: REST tables and object storage."""
from decible.backend.client import BackendClient, BackendError
from decible.backend.storage import StoredObject, make_object_key, upload_audio

__all__ = ["BackendClient", "BackendError", "StoredObject", "make_object_key", "upload_audio"]
