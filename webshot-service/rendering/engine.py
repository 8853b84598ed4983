import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path

from rendering.models import RenderOptions, RenderedImage
from webshot.core import setup_logger

logger = setup_logger("webshot.rendering")


class RenderError(Exception):
    """Base rendering exception."""
    pass

class RenderTimeoutError(RenderError):
    """Raised when navigation exceeds the configured time limit."""
    pass

class RenderExecutionError(RenderError):
    """Raised on browser crashes, network failures and missing output."""
    pass


class RenderingBackend(ABC):
    """
    Abstraction for the underlying browser driver.
    Contractual Requirements for Implementers:
    - MUST write a screenshot of `url` to `output_path`.
    - MUST enforce its own navigation timeout.
    - MUST raise RenderTimeoutError or RenderExecutionError, never engine-specific errors.
    """
    @abstractmethod
    def render(self, url: str, output_path: Path, options: RenderOptions) -> None:
        pass


class RenderingEngine:
    """
    FLOW: Allocates a scoped temp .png path -> Delegates capture to the backend ->
    Verifies a non-empty file exists -> Returns a RenderedImage owned by the caller.
    Invariants:
    - No partial results: the temp file is removed on every failure path.
    - Every failure surfaces as a RenderError subclass; no retry.
    - Preconditions (valid URL, normalized options) are the caller's job.
    """

    def __init__(self, backend: RenderingBackend, temp_dir=None):
        self._backend = backend
        self._temp_dir = temp_dir

    def render(self, url: str, options: RenderOptions) -> RenderedImage:
        image = RenderedImage(path=self._allocate_path(), url=url)
        start = time.monotonic()
        try:
            self._backend.render(url, image.path, options)
            if not image.path.exists() or image.path.stat().st_size == 0:
                raise RenderExecutionError(f"Renderer produced no image for {url}")
        except RenderError as e:
            image.cleanup()
            logger.error(f"[RENDER] Failed for {url}: {e}")
            raise
        except Exception as e:
            image.cleanup()
            logger.error(f"[RENDER] Unexpected failure for {url}: {e}")
            raise RenderExecutionError(str(e)) from e

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"[RENDER] Captured {url} in {duration_ms}ms -> {image.path}")
        return image

    def _allocate_path(self) -> Path:
        fd, path = tempfile.mkstemp(prefix="webshot-", suffix=".png", dir=self._temp_dir)
        os.close(fd)
        return Path(path)
