"""Download URL helpers for files stored on the backend."""
import re

from ielts_mock.config import BACKEND_BASE_URL

# Content saved during early development leaked the dev server host
_LOCALHOST_RE = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?(?=[/?#]|$)", re.IGNORECASE)


def file_download_url(file_id: str | None, base_url: str = BACKEND_BASE_URL) -> str | None:
    """Build the absolute download URL for a stored file id."""
    if not file_id:
        return None
    return f"{base_url}/file/download/{file_id}"


def normalize_image_url(value: str | None, base_url: str = BACKEND_BASE_URL) -> str | None:
    """Normalize an image reference to an absolute download URL.

    Accepts a bare file id, a relative ``/api/file/download/<id>`` or
    ``/file/download/<id>`` path, or an absolute URL (a leaked localhost host
    is rewritten to the backend base URL).
    """
    if not value or not isinstance(value, str):
        return None
    ref = value.strip()
    if not ref:
        return None

    if _LOCALHOST_RE.match(ref):
        path = _LOCALHOST_RE.sub("", ref)
        return normalize_image_url(path or None, base_url)

    if ref.startswith(("http://", "https://", "data:")):
        return ref

    if ref.startswith("/api/file/download/"):
        ref = ref[len("/api"):]
    if ref.startswith("/file/download/"):
        return f"{base_url}{ref}"
    if ref.startswith("/"):
        return f"{base_url}{ref}"
    return file_download_url(ref, base_url)
