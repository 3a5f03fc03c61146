from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import Response, StreamingResponse

from ..config import settings
from ..services.directory import DirectoryResponder
from ..services.reply import Reply, RequestContext

router = APIRouter(prefix=settings.mount_path, tags=['browse'])
responder = DirectoryResponder(settings.browse_root, max_hops=settings.max_symlink_hops)

# RFC 3986 path characters plus '%', so existing escapes survive
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"


def _request_context(request: Request) -> RequestContext:
    script_name = request.scope.get('root_path', '') + settings.mount_path
    raw_path = request.scope.get('raw_path')
    if raw_path is not None:
        path = quote(raw_path, safe=_PATH_SAFE)
    else:
        path = quote(request.url.path)
    if path.startswith(script_name):
        path = path[len(script_name):]
    return RequestContext(path_info=path or '/', script_name=script_name, method=request.method)


def _to_response(reply: Reply, method: str) -> Response:
    status, headers, body = reply
    if isinstance(body, Response):
        return body
    content = iter(()) if method == 'HEAD' else iter(body)
    return StreamingResponse(content, status_code=status, headers=headers)


@router.api_route('/{path:path}', methods=['GET', 'HEAD'])
def browse(request: Request):
    context = _request_context(request)
    return _to_response(responder(context), context.method)
