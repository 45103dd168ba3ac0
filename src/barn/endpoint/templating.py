"""HTML wrapping for streamed output and templated errors.

The viewer page is split into a header (everything up to the opening of
the output container) and a fixed trailer closing it. Successful runs
stream between the two; failures render a warning paragraph between the
two in a single body.
"""

from __future__ import annotations

import html
import logging
from contextlib import aclosing
from importlib import resources
from typing import AsyncGenerator, AsyncIterator

from fastapi.responses import HTMLResponse, PlainTextResponse, StreamingResponse

from barn.domain.models import Failure, StreamChunk

logger = logging.getLogger(__name__)

HTML_MEDIA_TYPE = "text/html"
DEFAULT_TRAILER = b"</div> </body> </html>"


def load_template() -> bytes:
    """Read the bundled viewer page header."""
    return resources.files("barn.endpoint").joinpath("templates/viewer.html").read_bytes()


def warning_fragment(message: str) -> bytes:
    return f'<p class="warning">{html.escape(message, quote=False)}</p>'.encode("utf-8")


class ViewerTemplate:
    """Wraps response bodies in the viewer page."""

    def __init__(self, header: bytes, trailer: bytes = DEFAULT_TRAILER) -> None:
        self._header = header
        self._trailer = trailer

    @property
    def header(self) -> bytes:
        return self._header

    @property
    def trailer(self) -> bytes:
        return self._trailer

    def render_error(self, message: str) -> bytes:
        return self._header + warning_fragment(message) + self._trailer

    def error(self, failure: Failure) -> HTMLResponse:
        """Render a failure as a complete page with its status code."""
        return HTMLResponse(
            content=self.render_error(failure.message),
            status_code=failure.status_code,
            media_type=HTML_MEDIA_TYPE,
        )

    def wrap(
        self, chunks: AsyncGenerator[StreamChunk | Failure, None]
    ) -> StreamingResponse:
        """Stream ``chunks`` between the header and the trailer.

        The body is pulled by the server as the client accepts it. A
        Failure in the sequence can no longer change the 200 status, so
        it is shown as a warning before the trailer.
        """
        return StreamingResponse(
            self._stream(chunks),
            status_code=200,
            media_type=HTML_MEDIA_TYPE,
        )

    async def _stream(
        self, chunks: AsyncGenerator[StreamChunk | Failure, None]
    ) -> AsyncIterator[bytes]:
        yield self._header
        async with aclosing(chunks) as items:
            async for item in items:
                if isinstance(item, Failure):
                    yield warning_fragment(item.message)
                    break
                yield item.to_html()
        yield self._trailer

    @staticmethod
    def not_found(path: str) -> PlainTextResponse:
        """The untemplated response for paths outside the executable route."""
        return PlainTextResponse(content=path, status_code=404)
