from __future__ import annotations

import re
from dataclasses import dataclass
from email.utils import formatdate
from typing import Callable, Iterable, NamedTuple
from urllib.parse import unquote

from fastapi.responses import Response


class Reply(NamedTuple):
    status: int
    headers: dict[str, str]
    body: Iterable[str | bytes] | Response


@dataclass(frozen=True)
class RequestContext:
    path_info: str
    script_name: str = ''
    method: str = 'GET'


Responder = Callable[[RequestContext], Reply]

_SLASHES = re.compile(r'/+')


def text_reply(status: int, body: str) -> Reply:
    headers = {
        'Content-Type': 'text/plain',
        'Content-Length': str(len(body.encode('utf-8'))),
    }
    return Reply(status, headers, [body])


def forbidden() -> Reply:
    return text_reply(403, 'Forbidden\n')


def join_path(*parts: str) -> str:
    """Join path segments with a single separator, keeping a leading slash."""
    return _SLASHES.sub('/', '/'.join(parts))


def http_date(timestamp: float) -> str:
    return formatdate(timestamp, usegmt=True)


def contains_traversal(path_info: str) -> bool:
    return '..' in path_info or '..' in unquote(path_info)
