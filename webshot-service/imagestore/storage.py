from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional


class StorageBackendError(Exception):
    """Raised on any storage failure other than 'object not found'."""
    pass

class ObjectExistsError(StorageBackendError):
    """Raised by a conditional put when the key was created concurrently."""
    pass


class ImageStorage(ABC):
    """
    Abstract storage interface for rendered images, addressed by caller-chosen name.
    Implementations map a name to their own key layout.
    Invariant: existence of a name's key is the sole source of truth for "name in use".
    """

    @abstractmethod
    def exists(self, name: str) -> bool:
        """True if an object is stored under `name`. 'Not found' is False, anything else raises."""
        pass

    @abstractmethod
    def put(
        self,
        name: str,
        body: bytes,
        *,
        content_type: str,
        cache_control: Optional[str] = None,
        expires: Optional[datetime] = None,
    ) -> None:
        """Persist `body` under `name`."""
        pass

    @abstractmethod
    def signed_read_url(self, name: str) -> str:
        """Time-limited URL granting read access to the object stored under `name`."""
        pass
