"""Payment proof storage (file uploads through Django's storage API)."""

import os
import uuid
from typing import Any

from django.conf import settings
from django.core.files.storage import default_storage


def build_proof_path(event_id: Any, filename: str) -> str:
    """Return the storage path for a new proof image of an event."""
    _, ext = os.path.splitext(filename or '')
    ext = ext.lower() if ext else '.png'
    directory = getattr(settings, 'EVENTS_PAYMENT_PROOF_DIR', 'payment_proofs')
    return f"{directory}/{event_id}/{uuid.uuid4().hex}{ext}"


def store_payment_proof(*, event_id: Any, upload) -> str:
    """
    Save an uploaded proof image and return its URL.

    Args:
        event_id: Event the proof belongs to
        upload: Django UploadedFile (or any File object)

    Returns:
        URL the stored file can be fetched from

    Raises:
        OSError: If the storage backend cannot write the file
    """
    path = default_storage.save(build_proof_path(event_id, upload.name), upload)
    return default_storage.url(path)
