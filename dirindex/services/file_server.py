from __future__ import annotations

import logging
import os
import stat
from urllib.parse import unquote

from fastapi.responses import FileResponse

from .mime import mime_type
from .reply import Reply, RequestContext, contains_traversal, forbidden, join_path, text_reply

logger = logging.getLogger(__name__)


class FileServer:
    """Serves regular files below ``root``; the default delegate of the directory responder.

    The reply body is a ``FileResponse``, which streams the file and sets the
    caching headers, so the router hands it to the client unchanged.
    """

    def __init__(self, root: str):
        self.root = os.path.realpath(os.path.expanduser(root))

    def __call__(self, context: RequestContext) -> Reply:
        if contains_traversal(context.path_info):
            logger.warning('Rejected traversal attempt: %r', context.path_info)
            return forbidden()

        path = join_path(self.root, unquote(context.path_info))
        try:
            st = os.stat(path)
        except (OSError, ValueError) as exc:
            logger.debug('Cannot stat %r: %s', path, exc)
            return self.not_found(context)

        if not stat.S_ISREG(st.st_mode) or not os.access(path, os.R_OK):
            return self.not_found(context)

        _, ext = os.path.splitext(path)
        response = FileResponse(path, stat_result=st, media_type=mime_type(ext))
        return Reply(response.status_code, dict(response.headers), response)

    def not_found(self, context: RequestContext) -> Reply:
        return text_reply(404, f'File not found: {context.path_info}\n')
