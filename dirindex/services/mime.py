from __future__ import annotations

import mimetypes

DEFAULT_MIME_TYPE = 'application/octet-stream'

_mimes = mimetypes.MimeTypes()


def mime_type(ext: str, fallback: str = DEFAULT_MIME_TYPE) -> str:
    """Return the MIME type for a file extension such as ``.html``."""
    if not ext or not ext.startswith('.'):
        return fallback
    ext = ext.lower()
    return _mimes.types_map[True].get(ext) or _mimes.types_map[False].get(ext) or fallback
