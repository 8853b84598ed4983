"""
Flask front-end for the image store service.
Routes: /store (render + persist), /f/<name> (redirect to stored image), /generate (render + download)
"""

import io
import threading

from flask import Flask, jsonify, redirect, request, send_file

from rendering.models import RenderOptions
from webshot.core import setup_logger
from webshot.errors import RenderFailed, ValidationError, WebshotError
from webshot.url_utils import display_name

logger = setup_logger("webshot.api")

app = Flask(__name__)

_service_lock = threading.Lock()


def get_service():
    """Return the configured ImageStoreService, building it from the environment on first use."""
    service = app.config.get("IMAGE_STORE_SERVICE")
    if service is not None:
        return service
    with _service_lock:
        if app.config.get("IMAGE_STORE_SERVICE") is None:
            from webshot.service import build_service
            app.config["IMAGE_STORE_SERVICE"] = build_service()
        return app.config["IMAGE_STORE_SERVICE"]


def _parse_int(values, field):
    raw = values.get(field)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {field}")


def parse_options(values) -> RenderOptions:
    """Map request parameters onto RenderOptions. Only the literal 'true' enables full-page capture."""
    return RenderOptions(
        width=_parse_int(values, "width"),
        height=_parse_int(values, "height"),
        delay_ms=_parse_int(values, "delay"),
        user_agent=values.get("userAgent") or None,
        full_page=(values.get("full") == "true"),
    )


@app.errorhandler(WebshotError)
def handle_service_error(err):
    if err.http_status >= 500:
        logger.error(f"[API] {request.method} {request.path} -> {err.http_status} {err.kind.value}: {err.message}")
    else:
        logger.info(f"[API] {request.method} {request.path} -> {err.http_status} {err.kind.value}: {err.message}")
    return err.message, err.http_status, {"Content-Type": "text/plain; charset=utf-8"}


# ============================================================
# STORE - Generate and persist an image under a name
# ============================================================

@app.route("/store", methods=["GET", "POST"])
def store():
    name = request.values.get("name")
    url = request.values.get("url")
    options = parse_options(request.values)

    fetch_path = get_service().store(name, url, options)
    return jsonify({"url": fetch_path})


# ============================================================
# FETCH - Redirect to a stored image
# ============================================================

@app.route("/f/<path:name>")
def fetch(name):
    target = get_service().fetch_redirect_target(name)
    return redirect(target)


# ============================================================
# GENERATE - Render and download without storing
# ============================================================

@app.route("/generate", methods=["GET", "POST"])
def generate():
    url = request.values.get("url")
    options = parse_options(request.values)

    image = get_service().generate(url, options)
    try:
        data = image.read_bytes()
    except OSError as e:
        raise RenderFailed("Unable to take a screenshot") from e
    finally:
        image.cleanup()

    return send_file(
        io.BytesIO(data),
        mimetype="image/png",
        as_attachment=True,
        download_name=display_name(url),
    )
