import asyncio
import time
from collections import deque
from typing import Callable, Iterable

from fastapi import Request
from fastapi.responses import JSONResponse
from jose import JWTError
from paperless.errors import error_body
from paperless.utils.security import decode_token

DEFAULT_GUARDED_PATHS = ("/auth/login", "/auth/register", "/documents/upload")


class SlidingWindow:
    """Per-key call timestamps inside the last ``window_seconds``."""

    def __init__(self, window_seconds: int, max_calls: int):
        self.window_seconds = window_seconds
        self.max_calls = max_calls
        self._calls: dict[str, deque[float]] = {}
        self._next_sweep = 0.0

    def __len__(self) -> int:
        return len(self._calls)

    def _sweep(self, now: float) -> None:
        """Forget keys whose newest call has left the window."""
        cutoff = now - self.window_seconds
        for key in [k for k, calls in self._calls.items() if not calls or calls[-1] <= cutoff]:
            del self._calls[key]
        self._next_sweep = now + self.window_seconds

    def hit(self, key: str, now: float) -> int | None:
        """Record a call; return seconds to wait instead if the budget is spent."""
        if now >= self._next_sweep:
            self._sweep(now)

        calls = self._calls.setdefault(key, deque())
        while calls and calls[0] <= now - self.window_seconds:
            calls.popleft()

        if len(calls) >= self.max_calls:
            return max(1, int(calls[0] + self.window_seconds - now))
        calls.append(now)
        return None


class RateLimitMiddleware:
    """Throttle the endpoints that take credentials or files."""

    def __init__(
        self,
        app,
        *,
        window_seconds: int,
        max_calls: int,
        key_func: Callable[[Request], str],
        include_path_prefixes: Iterable[str] = DEFAULT_GUARDED_PATHS,
        clock: Callable[[], float] = time.time,
    ):
        self.app = app
        self.limiter = SlidingWindow(window_seconds, max_calls)
        self.key_func = key_func
        self.guarded = tuple(include_path_prefixes)
        self.clock = clock
        self._lock = asyncio.Lock()

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not scope.get("path", "").startswith(self.guarded):
            return await self.app(scope, receive, send)

        key = self.key_func(Request(scope, receive=receive))
        async with self._lock:
            retry_after = self.limiter.hit(key, self.clock())

        if retry_after is not None:
            resp = JSONResponse(
                status_code=429,
                content=error_body(
                    "Too Many Requests",
                    {
                        "window_seconds": self.limiter.window_seconds,
                        "max_calls": self.limiter.max_calls,
                        "try_again_in": retry_after,
                    },
                ),
                headers={"Retry-After": str(retry_after)},
            )
            return await resp(scope, receive, send)

        return await self.app(scope, receive, send)


def client_key(req: Request) -> str:
    """Signed-in callers are limited per user, everyone else per address."""
    auth = req.headers.get("authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        try:
            sub = decode_token(token.strip()).get("sub")
        except JWTError:
            sub = None
        if sub:
            return f"user:{sub}"

    return f"ip:{req.client.host if req.client else 'unknown'}"
