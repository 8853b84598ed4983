from rendering.models import RenderOptions, RenderedImage, normalize_options
from rendering.engine import (
    RenderingEngine,
    RenderingBackend,
    RenderError,
    RenderTimeoutError,
    RenderExecutionError
)
