from __future__ import annotations

import html
import logging
import os
import stat
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple
from urllib.parse import quote, unquote

from .file_server import FileServer
from .mime import mime_type
from .reply import Reply, RequestContext, Responder, contains_traversal, forbidden, http_date, join_path, text_reply

logger = logging.getLogger(__name__)

MAX_SYMLINK_HOPS = 10

DIR_ROW = (
    "<tr><td class='name'><a href='%s'>%s</a></td><td class='size'>%s</td>"
    "<td class='type'>%s</td><td class='mtime'>%s</td></tr>"
)
DIR_PAGE = """<html><head>
  <title>%s</title>
  <meta http-equiv="content-type" content="text/html; charset=utf-8" />
  <style type='text/css'>
table { width:100%%; }
.name { text-align:left; }
.size, .mtime { text-align:right; }
  </style>
</head><body>
<h1>%s</h1>
<hr />
<table>
  <tr>
    <th class='name'>Name</th>
    <th class='size'>Size</th>
    <th class='type'>Type</th>
    <th class='mtime'>Last Modified</th>
  </tr>
%s
</table>
<hr />
</body></html>
"""

FILESIZE_FORMAT = (
    ('%.1fT', 1 << 40),
    ('%.1fG', 1 << 30),
    ('%.1fM', 1 << 20),
    ('%.1fK', 1 << 10),
)


def format_size(size: int) -> str:
    for template, threshold in FILESIZE_FORMAT:
        if size >= threshold:
            return template % (size / threshold)
    return f'{size}B'


def resolve_node(node: str, max_hops: int = MAX_SYMLINK_HOPS) -> tuple[str, os.stat_result] | None:
    """Stat ``node``, following symlinks for at most ``max_hops`` links.

    Returns the path the links resolved to (only its extension matters to
    callers) with its stat result, or ``None`` if the node cannot be found.
    Once the hop budget is spent the remaining path is stat'ed as is, so a
    symlink cycle costs bounded work and ends up as ``None``.
    """
    try:
        while max_hops > 0 and os.path.islink(node):
            target = os.readlink(node)
            node = os.path.join(os.path.dirname(node), target)
            max_hops -= 1
        return node, os.stat(node)
    except OSError as exc:
        logger.debug('Skipping unresolvable node %s: %s', node, exc)
        return None


class ListingEntry(NamedTuple):
    href: str
    name: str
    size: str
    type: str
    mtime: str


PARENT_ENTRY = ListingEntry('../', 'Parent Directory', '', '', '')


@dataclass
class DirectoryListing:
    """Entries of one directory index together with their HTML rendering."""

    title: str
    rows: list[ListingEntry] = field(default_factory=lambda: [PARENT_ENTRY])

    def entries(self) -> Iterator[ListingEntry]:
        yield from self.rows

    def lines(self) -> Iterator[str]:
        title = html.escape(self.title)
        rows = '\n'.join(DIR_ROW % _escape_row(row) for row in self.rows)
        page = DIR_PAGE % (title, title, rows)
        yield from page.splitlines(keepends=True)

    def render(self) -> str:
        return ''.join(self.lines())

    def __iter__(self) -> Iterator[str]:
        return self.lines()


def _escape_row(row: ListingEntry) -> tuple[str, ...]:
    href = html.escape(quote(row.href, safe='/'), quote=True)
    return (href,) + tuple(html.escape(value) for value in row[1:])


@dataclass(frozen=True)
class _RequestState:
    context: RequestContext
    path: str


class DirectoryResponder:
    """Serves entries below ``root`` according to the request path.

    Directories are rendered as an HTML index; regular files are handed to
    ``app``, which defaults to a :class:`FileServer` on the same root. The
    responder keeps no per-request state, so one instance can serve
    concurrent requests.
    """

    def __init__(self, root: str, app: Responder | None = None, max_hops: int = MAX_SYMLINK_HOPS):
        self.root = os.path.realpath(os.path.expanduser(root))
        self.app = app or FileServer(self.root)
        self.max_hops = max_hops

    def __call__(self, context: RequestContext) -> Reply:
        if contains_traversal(context.path_info):
            logger.warning('Rejected traversal attempt: %r', context.path_info)
            return forbidden()

        state = _RequestState(context, join_path(self.root, unquote(context.path_info)))
        return self.list_path(state)

    # TODO: 403 might describe an existing but unreadable entity better than 404
    def list_path(self, state: _RequestState) -> Reply:
        try:
            st = os.stat(state.path)
        except (OSError, ValueError) as exc:
            logger.debug('Cannot stat %r: %s', state.path, exc)
            return self.entity_not_found(state.context)

        if not os.access(state.path, os.R_OK):
            return self.entity_not_found(state.context)
        if stat.S_ISREG(st.st_mode):
            return self.app(state.context)
        if stat.S_ISDIR(st.st_mode):
            return self.list_directory(state)
        return self.entity_not_found(state.context)

    def list_directory(self, state: _RequestState) -> Reply:
        try:
            names = sorted(name for name in os.listdir(state.path) if not name.startswith('.'))
        except OSError as exc:
            logger.debug('Cannot list %s: %s', state.path, exc)
            return self.entity_not_found(state.context)

        listing = DirectoryListing(title=self.show_path(state.path))
        for basename in names:
            resolved = resolve_node(os.path.join(state.path, basename), self.max_hops)
            if resolved is None:
                continue
            name, st = resolved

            url = join_path(state.context.script_name, unquote(state.context.path_info), basename)
            if stat.S_ISDIR(st.st_mode):
                size, type_ = '-', 'directory'
            else:
                _, ext = os.path.splitext(name)
                size, type_ = format_size(st.st_size), mime_type(ext)
            listing.rows.append(ListingEntry(url, basename, size, type_, http_date(st.st_mtime)))

        return Reply(200, {'Content-Type': 'text/html; charset=utf-8'}, listing)

    def show_path(self, path: str) -> str:
        if self.root != '/' and path.startswith(self.root):
            return path[len(self.root):]
        return path

    def entity_not_found(self, context: RequestContext) -> Reply:
        return text_reply(404, f'Entity not found: {context.path_info}\n')
