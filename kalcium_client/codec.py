"""
Wire encoding of request payloads that carry media files.

Entries and term requests without media are sent as plain JSON. With media,
the request is ``multipart/form-data``: an ``application/json`` part holding
the model, followed by one ``files`` part per uploaded file.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models.entries import UploadFileModel

FILES_PART = "files"


def encode_multipart(part_name: str, payload: Dict[str, Any],
                     media_files: Iterable[UploadFileModel]) -> List[Tuple[str, Tuple[str, bytes, str]]]:
    """
    Build httpx ``files`` parts for a JSON payload plus media files.

    Args:
        part_name: Form name of the JSON part
        payload: JSON-serializable model
        media_files: Files to attach

    Returns:
        List of (form name, (file name, content, content type)) tuples
    """
    parts = [
        (part_name, (f"{part_name}.json",
                     json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                     "application/json")),
    ]
    for upload in media_files:
        parts.append((FILES_PART, (upload.file_name, upload.content, upload.content_type)))
    return parts


def encode_payload(part_name: str, payload: Dict[str, Any],
                   media_files: Optional[Iterable[UploadFileModel]] = None) -> Dict[str, Any]:
    """
    Return the request keyword arguments for ``payload``.

    Gives ``{"json_body": payload}`` when there is no media, otherwise
    ``{"files": [...]}``.
    """
    media_files = list(media_files or [])
    if not media_files:
        return {"json_body": payload}
    return {"files": encode_multipart(part_name, payload, media_files)}
