"""Core services: object store adapter, document stores, lifecycle workflows."""
from phxradio.core.metadata_store import MetadataStore
from phxradio.core.object_store import ObjectStore, S3ObjectStore
from phxradio.core.playlist_store import PlaylistStore

__all__ = ["MetadataStore", "ObjectStore", "PlaylistStore", "S3ObjectStore"]
