"""FastAPI HTTP server exposing the executables' root.

    GET /{filename}  -> runs <root>/<filename>, streams its output as HTML

Any other path returns 404 with the requested path as the body. The
settings are attached to ``app.state`` once and only ever read.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from barn.auth.engine import authorize, parse_basic_credentials
from barn.config.settings import Settings
from barn.domain.models import ExecutableRequest, Failure, StreamChunk, executable_path
from barn.endpoint.templating import ViewerTemplate, load_template
from barn.process.invoker import ProcessHandle, spawn
from barn.process.merger import merge_streams

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    template: ViewerTemplate | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: The loaded configuration, shared by every request.
        template: Optional pre-built viewer template (for testing).
    """
    app = FastAPI(
        title="barn",
        description="Run the executables in a directory over HTTP",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.template = template or ViewerTemplate(load_template())

    @app.exception_handler(StarletteHTTPException)
    async def unmatched_route(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return ViewerTemplate.not_found(request.url.path)
        return Response(content=str(exc.detail), status_code=exc.status_code)

    @app.get("/{filename}")
    async def run_executable(filename: str, request: Request) -> Response:
        config: Settings = app.state.settings
        viewer: ViewerTemplate = app.state.template

        exec_request = ExecutableRequest(
            filename=filename,
            credentials=parse_basic_credentials(request.headers.get("Authorization")),
        )
        decision = authorize(config, exec_request)
        if isinstance(decision, Failure):
            logger.warning(
                "Denied %s for %s: %s",
                filename,
                exec_request.credentials.username if exec_request.credentials else "anonymous",
                decision.message,
            )
            return viewer.error(decision)

        handle = await spawn(executable_path(config.options.root, filename))
        if isinstance(handle, Failure):
            return viewer.error(handle)

        return viewer.wrap(_process_output(handle))

    return app


async def _process_output(
    handle: ProcessHandle,
) -> AsyncGenerator[StreamChunk | Failure, None]:
    """Merged output of ``handle``, killing the process if not read to EOF."""
    finished = False
    try:
        async with aclosing(merge_streams(handle.stdout, handle.stderr)) as chunks:
            async for item in chunks:
                yield item
                if isinstance(item, Failure):
                    return
        finished = True
    finally:
        if not finished:
            await handle.terminate()
        elif not handle.is_running:
            await handle.wait()


def run(settings: Settings) -> None:
    """Serve ``settings`` with uvicorn until interrupted."""
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.options.host,
        port=settings.options.port,
    )
