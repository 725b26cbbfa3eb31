from typing import Iterable

from fastapi.responses import JSONResponse
from paperless.errors import error_body

# multipart boundaries, part headers and the title/category/tags fields
FORM_OVERHEAD_BYTES = 64 * 1024


class UploadSizeLimitMiddleware:
    """Refuse an upload from its Content-Length before the body is read.

    Bodies without a Content-Length still hit the byte count in the upload
    pipeline.
    """

    def __init__(self, app, *, max_bytes: int, paths: Iterable[str] = ("/documents/upload",)):
        self.app = app
        self.max_bytes = max_bytes
        self.paths = frozenset(paths)

    def _declared_length(self, scope) -> int | None:
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope.get("path") not in self.paths:
            return await self.app(scope, receive, send)

        length = self._declared_length(scope)
        if length is not None and length > self.max_bytes + FORM_OVERHEAD_BYTES:
            resp = JSONResponse(
                status_code=400,
                content=error_body("File upload error", f"File too large. Max size: {self.max_bytes} bytes"),
                headers={"Connection": "close"},
            )
            return await resp(scope, receive, send)

        return await self.app(scope, receive, send)
