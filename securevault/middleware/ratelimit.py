import time
import asyncio
import logging
from collections import deque
from typing import Callable, Iterable
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

class RateLimitMiddleware:
    """Sliding-window request counter per client key.

    A blunt in-process limiter: no queueing, no sharing between workers.
    """

    def __init__(
        self,
        app,
        *,
        window_seconds: int,
        max_calls: int,
        key_func: Callable[[Request], str],
        include_path_prefixes: Iterable[str] = ("/",),
        exclude_paths: Iterable[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app = app
        self.window = window_seconds
        self.max_calls = max_calls
        self.key_func = key_func
        self.include_paths = tuple(include_path_prefixes)
        self.exclude_paths = frozenset(exclude_paths)
        self.clock = clock

        self._buckets: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()
        self._last_sweep = clock()

    def _should_guard(self, path: str) -> bool:
        if path in self.exclude_paths:
            return False
        return any(path.startswith(p) for p in self.include_paths)

    def _sweep(self, now: float) -> None:
        # drop keys whose newest hit has left the window; caller holds the lock
        cutoff = now - self.window
        stale = [k for k, q in self._buckets.items() if not q or q[-1] <= cutoff]
        for k in stale:
            del self._buckets[k]
        self._last_sweep = now

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        path = scope.get("path", "")
        if not self._should_guard(path):
            return await self.app(scope, receive, send)

        request = Request(scope, receive=receive)
        key = self.key_func(request)

        now = self.clock()
        async with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)

            q = self._buckets.get(key)
            if q is None:
                q = deque()
                self._buckets[key] = q

            cutoff = now - self.window
            while q and q[0] <= cutoff:
                q.popleft()

            if len(q) >= self.max_calls:
                retry_after = max(1, int(q[0] + self.window - now))
                logger.warning("Rate limit hit for %s on %s", key, path)
                resp = JSONResponse(
                    status_code=429,
                    content={
                        "error": "Too many requests, please try again later.",
                        "code": "rate_limited",
                        "windowSeconds": self.window,
                        "maxCalls": self.max_calls,
                        "tryAgainIn": retry_after,
                    },
                )
                resp.headers["Retry-After"] = str(retry_after)
                return await resp(scope, receive, send)

            q.append(now)

        return await self.app(scope, receive, send)


def client_address(req: Request) -> str:
    ip = req.client.host if req.client else "unknown"
    return f"ip:{ip}"
