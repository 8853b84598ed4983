import re
from urllib.parse import urlparse

from webshot.errors import ValidationError

# ASCII semantics: only [A-Za-z0-9_] count as word characters
_NON_WORD = re.compile(r"\W", re.ASCII)


def validate_url(url):
    """
    Accept only absolute URLs carrying both a scheme and a host.
    Raises ValidationError describing the first missing part.
    """
    if not url:
        raise ValidationError("Missing url")

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        raise ValidationError("Invalid url")

    if not parsed.scheme:
        raise ValidationError("Invalid url, missing protocol")
    if not hostname:
        raise ValidationError("Invalid url, missing hostname")
    return parsed


def display_name(url: str, extension: str = ".png") -> str:
    """
    Build a download file name from a URL's host and path.
    For example, `http://okfn.org/about/how-we-can-help-you/` becomes
    `okfn_org_about_how_we_can_help_you.png`.
    """
    parsed = urlparse(url)
    image_name = _NON_WORD.sub("_", parsed.hostname or "")
    path_name = _NON_WORD.sub("_", parsed.path or "").rstrip("_")
    if path_name:
        image_name += path_name
    return image_name + extension


def validate_name(name):
    """
    Stored names stay inside the storage base directory:
    no leading '/', and no '.' or '..' path segments.
    """
    if not name:
        raise ValidationError("Missing name")
    if name.startswith("/") or any(segment in (".", "..") for segment in name.split("/")):
        raise ValidationError("Invalid name")
    return name
