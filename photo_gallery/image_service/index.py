import logging
import threading
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from photo_gallery.image_service.metadata import record_from_object
from photo_gallery.image_service.models import ImageRecord
from photo_gallery.storage.s3 import S3Service

log = logging.getLogger(__name__)


class MetadataIndex:
    """
        In-memory index of image records, backed by the object store.

        The store stays the source of truth: the index is filled from it by
        rebuild() and kept in step by the upload and delete handlers. Readiness
        of the startup rebuild is exposed through ready / wait_ready().
    """

    def __init__(self, store: S3Service):
        self.store = store
        self._records: List[ImageRecord] = []
        self._lock = threading.Lock()
        self._ready = threading.Event()

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def __len__(self) -> int:
        return len(self._records)

    def rebuild(self) -> int:
        """Clears the index and reloads it from the store. Never raises."""
        self._ready.clear()
        with self._lock:
            self._records.clear()
        log.info("Recovering metadata from bucket %s", self.store.bucket)
        try:
            for key in self.store.list_keys():
                try:
                    stat = self.store.stat(key)
                    self.append(record_from_object(stat, self.store.public_url(key)))
                except (BotoCoreError, ClientError, ValueError) as e:
                    log.error("Failed to recover %s: %s", key, e)
        except (BotoCoreError, ClientError) as e:
            log.error("Failed to list bucket %s: %s", self.store.bucket, e)
        finally:
            self._ready.set()
        log.info("Recovery complete. Loaded %d images.", len(self))
        return len(self)

    def append(self, record: ImageRecord):
        with self._lock:
            self._records.append(record)

    def remove(self, file_name: str) -> bool:
        """Removes the first record stored under file_name, if any."""
        with self._lock:
            for i, record in enumerate(self._records):
                if record.file_name == file_name:
                    del self._records[i]
                    return True
        return False

    def list(self) -> List[ImageRecord]:
        """All records, newest upload first."""
        with self._lock:
            records = list(self._records)
        return sorted(records, key=lambda r: r.upload_date, reverse=True)

    def search(self, query: str) -> List[ImageRecord]:
        """Case-insensitive substring match on title, description or tags."""
        q = query.lower()
        return [
            r for r in self.list()
            if q in r.title.lower() or q in r.description.lower() or q in r.tags.lower()
        ]
