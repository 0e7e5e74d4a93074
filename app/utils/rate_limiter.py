import logging, math, threading, time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float


class RateLimiter:
    """
    Fixed window counter per key: at most max_requests hits in each
    window_seconds window, the window starting at the key's first hit.
    """

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        if max_requests < 1 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def hit(self, key: str) -> RateLimitResult:
        now = self.clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0

            count += 1
            self._windows[key] = (started, count)
            self._prune(now)

        reset_after = max(0.0, self.window_seconds - (now - started))
        return RateLimitResult(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=reset_after,
        )

    def _prune(self, now: float):
        # drop expired windows so idle callers do not pile up, at most once per window
        if now - self._last_prune < self.window_seconds:
            return
        self._last_prune = now
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self):
        with self._lock:
            self._windows.clear()


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware:
    """ASGI middleware applying the limiter to HTTP requests under path_prefix"""

    def __init__(self, app, limiter: RateLimiter, path_prefix: str = "/api"):
        self.app = app
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not scope["path"].startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        key = client_key(request)
        result = self.limiter.hit(key)
        headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
        }

        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {key} on {request.url.path}")
            headers["Retry-After"] = str(math.ceil(result.reset_after))
            response = JSONResponse(
                status_code=429,
                content={"success": False, "message": RATE_LIMIT_MESSAGE},
                headers=headers,
            )
            await response(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                for name, value in headers.items():
                    response_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)
