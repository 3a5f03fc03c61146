from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from .config import settings
from .routers import browse

logger = logging.getLogger(__name__)

_SECURITY_HEADERS = {
    'Content-Security-Policy': "default-src 'self'; style-src 'self' 'unsafe-inline'",
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def _init_logging():
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')


@asynccontextmanager
async def lifespan(_app: FastAPI):
    _init_logging()
    root = Path(browse.responder.root)
    if not root.is_dir():
        raise RuntimeError(f'Browse root {root} is not a directory. Set BROWSE_ROOT in .env')
    logger.info('Serving %s under %s', root, settings.mount_path or '/')
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)


def _apply_security_headers(response):
    for key, value in _SECURITY_HEADERS.items():
        response.headers[key] = value
    return response


@app.middleware('http')
async def security_middleware(request: Request, call_next):
    response = await call_next(request)
    return _apply_security_headers(response)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    if request.url.path == '/healthz':
        response = JSONResponse({'detail': 'Internal server error. Please try again.'}, status_code=500)
    else:
        response = HTMLResponse('<h1>Unexpected error</h1><p>Please try again later.</p>', status_code=500)
    return _apply_security_headers(response)


@app.get('/healthz')
def healthz():
    return {'ok': True}


app.include_router(browse.router)


def run():
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level)
