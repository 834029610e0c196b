"""URL rewrites for assets served by the media host.

The host accepts transformation directives as a path segment right after
``/upload/``, e.g. ``.../video/upload/f_auto,q_auto:good/v12/trip.mp4``.
URLs without that marker (third-party hosts) pass through untouched.
"""
from urllib.parse import urlsplit, urlunsplit

UPLOAD_MARKER = "/upload/"
DEFAULT_TRANSFORM = "f_auto,q_auto:good"
POSTER_TRANSFORM = "f_auto,q_auto:good,w_600,c_scale"
POSTER_OFFSET = "so_1"
POSTER_EXTENSION = ".jpg"


def is_asset_url(url: str) -> bool:
    return bool(url) and UPLOAD_MARKER in url


def optimize_url(url: str, transformations: str = DEFAULT_TRANSFORM) -> str:
    """Return ``url`` with ``transformations`` inserted after the upload marker.

    Applying the same transformations twice yields the same URL.
    """
    if not is_asset_url(url) or not transformations:
        return url
    head, marker, tail = url.partition(UPLOAD_MARKER)
    if tail.startswith(transformations + "/"):
        return url
    return f"{head}{marker}{transformations}/{tail}"


def poster_url(video_url: str, transformations: str = POSTER_TRANSFORM) -> str:
    """Derive a still frame (1s in) for a hosted video, or "" when there is none.

    An empty result lets the caller drop the poster instead of requesting an
    image that cannot exist.
    """
    if not is_asset_url(video_url):
        return ""
    optimized = optimize_url(video_url, f"{transformations},{POSTER_OFFSET}")
    parts = urlsplit(optimized)
    stem, dot, ext = parts.path.rpartition(".")
    if not dot or "/" in ext:
        path = parts.path + POSTER_EXTENSION
    else:
        path = stem + POSTER_EXTENSION
    return urlunsplit(parts._replace(path=path))
