from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers

from linkdrop.config import settings


def _too_large_detail() -> str:
    return f"Upload exceeds {settings.upload_limit_mb} MiB."


class UploadLimitMiddleware:
    """Stop reading POST bodies once they exceed the configured upload limit.

    Requests announcing a larger Content-Length are refused before any of the
    body is read. Chunked bodies are counted as they arrive and abort with
    413 as soon as the limit is passed, before the form parser spools them.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        limit = settings.upload_limit_bytes
        content_length = Headers(scope=scope).get("content-length", "")
        if content_length.isdigit() and int(content_length) > limit:
            response = JSONResponse({"detail": _too_large_detail()}, status_code=413)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise HTTPException(413, _too_large_detail())
            return message

        await self.app(scope, limited_receive, send)
