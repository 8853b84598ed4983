import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from webshot.core import (
    DEFAULT_WIDTH,
    DEFAULT_HEIGHT,
    DEFAULT_DELAY_MS,
    DEFAULT_USER_AGENT,
    MAX_DELAY_MS,
    setup_logger,
)

logger = setup_logger("webshot.rendering")


@dataclass(frozen=True)
class RenderOptions:
    """
    Display options for a single screenshot.
    None means "not supplied"; normalized() fills defaults and clamps the delay.
    `height` is ignored by the engine when `full_page` is set.
    """
    width: Optional[int] = None
    height: Optional[int] = None
    delay_ms: Optional[int] = None
    user_agent: Optional[str] = None
    full_page: bool = False

    def normalized(self) -> "RenderOptions":
        # Zero is treated like an absent value
        delay = self.delay_ms or DEFAULT_DELAY_MS
        return replace(
            self,
            width=self.width or DEFAULT_WIDTH,
            height=self.height or DEFAULT_HEIGHT,
            delay_ms=min(max(delay, 0), MAX_DELAY_MS),
            user_agent=self.user_agent or DEFAULT_USER_AGENT,
            full_page=self.full_page is True,
        )


def normalize_options(options: Optional[RenderOptions]) -> RenderOptions:
    return (options or RenderOptions()).normalized()


@dataclass
class RenderedImage:
    """
    Ephemeral screenshot on local scratch storage.
    Invariant: owned by exactly one call and deleted on every exit path via cleanup().
    """
    path: Path
    url: str

    def read_bytes(self) -> bytes:
        return Path(self.path).read_bytes()

    def cleanup(self) -> None:
        """Delete the scratch file. Failures are logged, never raised."""
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[RENDER] Failed to remove temp file {self.path}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False
