"""
FILE DESCRIPTION: The image store service: validate -> render -> persist/return, one call at a time.
KEY FUNCTIONS/CLASSES: ImageStoreService, build_service

Store is check-then-write and not atomic: two concurrent stores under the same
name can both pass the existence check, and the storage backend's write order
decides the final content. Enabling a conditional put in StorageConfig turns
the losing write into a ConflictError.
"""

from datetime import datetime, timezone
from typing import Optional

from imagestore.storage import ImageStorage, ObjectExistsError, StorageBackendError
from rendering.engine import RenderError, RenderingEngine
from rendering.models import RenderOptions, RenderedImage, normalize_options
from webshot.core import RenderConfig, StorageConfig, setup_logger
from webshot.errors import (
    ConflictError,
    NotFoundError,
    RenderFailed,
    StorageError,
    ValidationError,
)
from webshot.url_utils import validate_name, validate_url

logger = setup_logger("webshot.service")

# Uploads are labelled JPEG although the renderer writes PNG bytes
UPLOAD_CONTENT_TYPE = "image/jpeg"
# Ten years
UPLOAD_CACHE_CONTROL = "max-age=315360000"
UPLOAD_EXPIRES = datetime(2035, 2, 1, tzinfo=timezone.utc)

FETCH_PATH_PREFIX = "/f/"


class ImageStoreService:
    """
    FLOW:
    - generate: validate url -> normalize options -> render -> hand the image to the caller.
    - store: validate name -> reject used names -> validate url -> render -> upload -> always delete local file.
    - fetch_redirect_target: validate name -> 404 unknown names -> signed read URL.
    Stateless across calls; the storage namespace is the only shared state.
    """

    def __init__(self, renderer: RenderingEngine, storage: ImageStorage):
        self._renderer = renderer
        self._storage = storage

    def generate(self, url: str, options: Optional[RenderOptions] = None) -> RenderedImage:
        """
        Render `url` and return the local image.
        The caller owns the returned file and must call cleanup() once it has been streamed.
        """
        validate_url(url)
        resolved = self._resolve_options(options)
        return self._render(url, resolved)

    def store(self, name: str, url: str, options: Optional[RenderOptions] = None) -> str:
        """Render `url` and persist it under `name`. Returns the fetch path for the stored image."""
        validate_name(name)

        if self._object_exists(name):
            raise ConflictError("A URL by that name already exists")

        validate_url(url)
        resolved = self._resolve_options(options)

        image = self._render(url, resolved)
        try:
            self._upload(name, image)
        finally:
            image.cleanup()

        logger.info(f"[STORE] Stored {url} as '{name}'")
        return fetch_path(name)

    def fetch_redirect_target(self, name: str) -> str:
        """Signed, time-limited URL for the image stored under `name`."""
        validate_name(name)

        if not self._object_exists(name):
            raise NotFoundError("A URL by that name does not exist")

        try:
            signed_url = self._storage.signed_read_url(name)
        except StorageBackendError as e:
            raise StorageError("Unable to locate the stored image") from e

        logger.info(f"[FETCH] Redirecting '{name}' to signed URL")
        return signed_url

    # --- Internals ---

    def _object_exists(self, name: str) -> bool:
        try:
            return self._storage.exists(name)
        except StorageBackendError as e:
            raise StorageError("Unable to check whether the image exists") from e

    def _resolve_options(self, options: Optional[RenderOptions]) -> RenderOptions:
        resolved = normalize_options(options)
        if resolved.width <= 0:
            raise ValidationError("Invalid width")
        if resolved.height <= 0:
            raise ValidationError("Invalid height")
        return resolved

    def _render(self, url: str, options: RenderOptions) -> RenderedImage:
        try:
            return self._renderer.render(url, options)
        except RenderError as e:
            raise RenderFailed("Unable to take a screenshot") from e

    def _upload(self, name: str, image: RenderedImage) -> None:
        try:
            body = image.read_bytes()
            self._storage.put(
                name,
                body,
                content_type=UPLOAD_CONTENT_TYPE,
                cache_control=UPLOAD_CACHE_CONTROL,
                expires=UPLOAD_EXPIRES,
            )
        except ObjectExistsError as e:
            raise ConflictError("A URL by that name already exists") from e
        except (StorageBackendError, OSError) as e:
            logger.error(f"[STORE] Upload of '{name}' failed: {e}")
            raise StorageError("Unable to upload the rendered image of the website to storage") from e


def fetch_path(name: str) -> str:
    return FETCH_PATH_PREFIX + name


def build_service(storage_config: Optional[StorageConfig] = None, render_config: Optional[RenderConfig] = None) -> ImageStoreService:
    """Wire the Playwright renderer and S3 storage from configuration (environment by default)."""
    # Concrete backends load lazily
    from imagestore.s3_storage import S3ImageStorage
    from rendering.playwright_backend import PlaywrightBackend

    storage_config = storage_config or StorageConfig.from_env()
    render_config = render_config or RenderConfig.from_env()

    backend = PlaywrightBackend(
        navigation_timeout=render_config.navigation_timeout,
        max_concurrent_renders=render_config.max_concurrent_renders,
    )
    return ImageStoreService(RenderingEngine(backend), S3ImageStorage(storage_config))
