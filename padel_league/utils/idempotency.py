# padel_league/utils/idempotency.py
import hashlib
import inspect
import logging
import threading
from collections import OrderedDict
from functools import wraps
from typing import Any

from fastapi import HTTPException, Request

from ..config import IDEMPOTENCY_CACHE_SIZE, is_testing

logger = logging.getLogger(__name__)

# In-memory replay cache (per-process), oldest entries evicted past the size cap.
_replay_cache: "OrderedDict[str, Any]" = OrderedDict()
_replay_cache_size = IDEMPOTENCY_CACHE_SIZE
_replay_lock = threading.Lock()


def clear_replay_cache() -> None:
    with _replay_lock:
        _replay_cache.clear()


async def _request_fingerprint(request: Request) -> str:
    """
    method|path|query|sha1(body). Starlette caches request.body(), so the
    endpoint can still read it afterwards.
    """
    body = await request.body()
    body_hash = hashlib.sha1(body or b"").hexdigest()
    return f"{request.method.upper()}|{request.url.path}|{request.url.query or ''}|{body_hash}"


def _find_request(args: tuple, kwargs: dict) -> Request:
    for a in args:
        if isinstance(a, Request):
            return a
    request = kwargs.get("request")
    if not isinstance(request, Request):
        raise HTTPException(status_code=500, detail="Request object not found")
    return request


def with_idempotency(key_prefix: str):
    """
    Replay guard for mutating endpoints.

    Requires an 'Idempotency-Key' header (auto-filled when TESTING=1). The
    first response for a given key + request fingerprint is cached and handed
    back verbatim on retries, so a retried call never runs the handler twice.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = _find_request(args, kwargs)

            header_key = request.headers.get("Idempotency-Key")
            if not header_key and is_testing():
                header_key = f"test-{key_prefix}"
            if not header_key:
                raise HTTPException(status_code=400, detail="Missing Idempotency-Key header")

            cache_key = f"{key_prefix}::{header_key}::{await _request_fingerprint(request)}"

            with _replay_lock:
                if cache_key in _replay_cache:
                    logger.debug("Replaying cached response for %s", key_prefix)
                    return _replay_cache[cache_key]

            if inspect.iscoroutinefunction(func):
                result = await func(*args, **kwargs)
            else:
                result = func(*args, **kwargs)

            with _replay_lock:
                cached = _replay_cache.setdefault(cache_key, result)
                while len(_replay_cache) > _replay_cache_size:
                    _replay_cache.popitem(last=False)
                return cached

        return wrapper

    return decorator
