"""Shared application state (injected into routes)."""
import logging

from phxradio import config
from phxradio.core.documents import DocumentBackend, FileDocumentBackend, ObjectDocumentBackend
from phxradio.core.errors import ConfigurationError
from phxradio.core.metadata_store import MetadataStore
from phxradio.core.object_store import ObjectStore, S3ObjectStore
from phxradio.core.playlist_store import PlaylistStore

logger = logging.getLogger(__name__)


class AppState:
    """Object store and JSON stores, built on first use unless injected.

    Building the S3 store raises ConfigurationError when no bucket is set, so a
    misconfigured deployment fails on the first request that needs storage.
    """

    def __init__(
        self,
        object_store: ObjectStore | None = None,
        document_backend: DocumentBackend | None = None,
        admin_username: str = config.ADMIN_USERNAME,
        admin_password: str = config.ADMIN_PASSWORD,
    ) -> None:
        self._object_store = object_store
        self._document_backend = document_backend
        self._metadata_store: MetadataStore | None = None
        self._playlist_store: PlaylistStore | None = None
        self.admin_username = admin_username
        self.admin_password = admin_password

    @property
    def object_store(self) -> ObjectStore:
        if self._object_store is None:
            self._object_store = S3ObjectStore(
                bucket_name=config.S3_BUCKET_NAME,
                region=config.AWS_REGION,
                endpoint_url=config.S3_ENDPOINT_URL,
                public_base_url=config.PUBLIC_BASE_URL,
            )
            logger.info("Object store: s3://%s (%s)", config.S3_BUCKET_NAME, config.AWS_REGION)
        return self._object_store

    @property
    def document_backend(self) -> DocumentBackend:
        if self._document_backend is None:
            if config.METADATA_BACKEND == "file":
                config.ensure_data_dir()
                self._document_backend = FileDocumentBackend(config.DATA_DIR)
            elif config.METADATA_BACKEND == "s3":
                self._document_backend = ObjectDocumentBackend(self.object_store)
            else:
                raise ConfigurationError(
                    f"PHXRADIO_METADATA_BACKEND must be 's3' or 'file', got {config.METADATA_BACKEND!r}"
                )
        return self._document_backend

    @property
    def metadata_store(self) -> MetadataStore:
        if self._metadata_store is None:
            self._metadata_store = MetadataStore(self.document_backend)
        return self._metadata_store

    @property
    def playlist_store(self) -> PlaylistStore:
        if self._playlist_store is None:
            self._playlist_store = PlaylistStore(self.document_backend)
        return self._playlist_store


_state = AppState()


def get_state() -> AppState:
    return _state
