"""Versioned JSON documents (metadata, playlist) on disk or in the bucket.

Every read returns an opaque version token; writes are conditional on it so a
read-modify-write that lost a race raises ConflictError instead of silently
overwriting the other writer.
"""
import hashlib
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

from phxradio.core.errors import ConflictError, UpstreamError
from phxradio.core.object_store import ObjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Document:
    """data is None and version is None when the document does not exist yet."""
    data: Optional[Dict[str, Any]]
    version: Optional[str]


def _encode(data: Dict[str, Any]) -> bytes:
    return json.dumps(data, indent=2, sort_keys=True).encode("utf-8")


def _decode(name: str, raw: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise UpstreamError(f"Document {name} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise UpstreamError(f"Document {name} must be a JSON object")
    return data


class DocumentBackend(ABC):
    @abstractmethod
    def read(self, name: str) -> Document:
        pass

    @abstractmethod
    def write(self, name: str, data: Dict[str, Any], expected_version: Optional[str]) -> str:
        """Replace the whole document if its version is still expected_version.

        expected_version None means "must not exist yet". Returns the new version.
        """


class FileDocumentBackend(DocumentBackend):
    """JSON files under root_dir; version is the SHA-256 of the stored bytes.

    The compare-and-write lock is a threading.Lock, so this only guards writers
    inside one process. Use it for single-worker local development; multi-worker
    deployments need the bucket backend.
    """

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self._lock = threading.Lock()

    def _path(self, name: str) -> Path:
        return self.root_dir / name

    def read(self, name: str) -> Document:
        p = self._path(name)
        try:
            raw = p.read_bytes()
        except FileNotFoundError:
            return Document(data=None, version=None)
        except OSError as e:
            raise UpstreamError(f"Could not read {p}: {e}") from e
        return Document(data=_decode(name, raw), version=hashlib.sha256(raw).hexdigest())

    def write(self, name: str, data: Dict[str, Any], expected_version: Optional[str]) -> str:
        p = self._path(name)
        raw = _encode(data)
        with self._lock:
            current = self.read(name)
            if current.version != expected_version:
                raise ConflictError(f"Document {name} changed since it was read")
            try:
                p.parent.mkdir(parents=True, exist_ok=True)
                # Temp file in the same directory, then rename: readers never see a partial document
                fd, tmp = tempfile.mkstemp(dir=p.parent, prefix=f".{p.name}.", suffix=".tmp")
                try:
                    with os.fdopen(fd, "wb") as f:
                        f.write(raw)
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(tmp, p)
                except BaseException:
                    Path(tmp).unlink(missing_ok=True)
                    raise
            except OSError as e:
                raise UpstreamError(f"Could not write {p}: {e}") from e
        return hashlib.sha256(raw).hexdigest()


class ObjectDocumentBackend(DocumentBackend):
    """JSON objects in the bucket; version is the object's ETag (S3 conditional writes)."""

    def __init__(self, object_store: ObjectStore):
        self.object_store = object_store

    def read(self, name: str) -> Document:
        obj = self.object_store.read(name)
        if obj is None:
            return Document(data=None, version=None)
        return Document(data=_decode(name, obj.body), version=obj.etag)

    def write(self, name: str, data: Dict[str, Any], expected_version: Optional[str]) -> str:
        return self.object_store.write(
            name,
            _encode(data),
            "application/json",
            if_match=expected_version,
            if_none_match=expected_version is None,
        )


def read_modify_write(
    backend: DocumentBackend,
    name: str,
    apply: Callable[[Document], tuple[Dict[str, Any], T]],
    attempts: int,
) -> T:
    """Re-read and re-apply on version conflict, up to attempts times.

    apply must be pure with respect to the document it receives: it returns the
    new document data and a result value, and may raise to abort.
    """
    for attempt in range(1, attempts + 1):
        doc = backend.read(name)
        data, result = apply(doc)
        try:
            backend.write(name, data, doc.version)
            return result
        except ConflictError:
            if attempt == attempts:
                raise
            logger.warning("Write conflict on %s (attempt %d/%d), re-reading", name, attempt, attempts)
    raise ConflictError(f"Document {name} could not be written")  # attempts < 1
