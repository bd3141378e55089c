from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Optional, Tuple

try:
    from starlette.concurrency import run_in_threadpool  # type: ignore[import-not-found]
    from starlette.responses import JSONResponse  # type: ignore[import-not-found]
except Exception:  # pragma: no cover
    run_in_threadpool = None  # type: ignore[assignment]
    JSONResponse = None  # type: ignore[assignment,misc]

from ..core.engine import Acl

logger = logging.getLogger("acltree.adapters.starlette")

# request -> (role, resource, privilege)
RequestBuilder = Callable[[Any], Tuple[Any, Any, Any]]


def _deny_headers(reason: Optional[str], add_headers: bool) -> dict[str, str]:
    if not add_headers or not reason:
        return {}
    return {"X-ACL-Reason": str(reason)}


def require_access(
    acl: Acl,
    build_request: RequestBuilder,
    add_headers: bool = False,
) -> Callable[..., Any]:
    """
    Starlette checkpoint that works both:
      - as a decorator on an endpoint (returns an async endpoint)
      - as a dependency-like callable: `dep = require_access(...); await dep(request)`
        which returns None when allowed and a 403 JSONResponse otherwise.
    """
    if JSONResponse is None or run_in_threadpool is None:
        raise RuntimeError(
            "require_access requires 'starlette'. Install with extra: acltree[starlette]"
        )

    async def _dependency(request: Any):
        role, resource, privilege = build_request(request)
        decision = acl.evaluate(role, resource, privilege)
        if decision.allowed:
            return None
        logger.debug(
            "acltree: denied role=%r resource=%r privilege=%r (%s)",
            role,
            resource,
            privilege,
            decision.reason,
        )
        return JSONResponse(
            {"detail": "Forbidden"},
            status_code=403,
            headers=_deny_headers(decision.reason, add_headers),
        )

    def _decorator_or_dependency(arg: Any):
        if not callable(arg):
            return _dependency(arg)

        handler = arg
        if inspect.iscoroutinefunction(handler):

            @functools.wraps(handler)
            async def _endpoint_async(request: Any):
                deny = await _dependency(request)
                if deny is not None:
                    return deny
                return await handler(request)

            return _endpoint_async

        @functools.wraps(handler)
        async def _endpoint_sync(request: Any):
            deny = await _dependency(request)
            if deny is not None:
                return deny
            return await run_in_threadpool(handler, request)

        return _endpoint_sync

    return _decorator_or_dependency


__all__ = ["require_access", "RequestBuilder"]
