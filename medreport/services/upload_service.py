"""Temporary storage for uploaded files.

An upload lives only for the request that carried it: it is written to disk
on receipt and removed when the ``stored_upload`` block exits, whatever the
outcome.
"""
from __future__ import annotations

import os
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from werkzeug.datastructures import FileStorage

from medreport.errors import NoFileUploaded


@dataclass(frozen=True)
class UploadedFile:
    path: str
    media_type: str
    filename: str = ""


def _ensure_upload_dir(folder: str) -> None:
    os.makedirs(folder, exist_ok=True)


@contextmanager
def stored_upload(file: FileStorage, folder: str) -> Iterator[UploadedFile]:
    if file is None or not (file.filename or "").strip():
        raise NoFileUploaded()

    _ensure_upload_dir(folder)
    path = os.path.join(folder, uuid.uuid4().hex)
    try:
        file.save(path)
        yield UploadedFile(path=path, media_type=file.mimetype or "", filename=file.filename or "")
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
