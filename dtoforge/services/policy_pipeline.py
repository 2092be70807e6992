"""Policy Pipeline — lifecycle hooks around create/update/delete flows.

Invariants:
    - Each run_* awaits its hook when configured, otherwise is a no-op
    - Hooks may be sync or async; both are supported transparently
    - Hooks only mutate the PolicyContext, never the pipeline
    - Exceptions raised by hooks propagate unchanged (callers map them to HTTP errors)

Design Decisions:
    - Pass-through invoker with no control logic: authorization/auditing belong to the hooks
    - Explicit run_* methods over a generic run(name): every lifecycle point visible in one place
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

Hook = Callable[..., Awaitable[None] | None]


@dataclass
class PolicyContext:
    """Runtime data handed to every hook."""
    actor: Any = None
    session: Any = None
    id: Any = None
    data: Any = None
    update: Any = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class PolicyHooks:
    """Optional callbacks, one per lifecycle point."""
    before_create: Hook | None = None
    after_create: Hook | None = None
    before_update: Hook | None = None
    after_update: Hook | None = None
    before_delete: Hook | None = None
    after_delete: Hook | None = None


class PolicyPipeline:
    """Runs configured hooks; missing hooks are skipped."""

    def __init__(self, hooks: PolicyHooks | None = None, **callbacks: Hook):
        self._hooks = hooks or PolicyHooks(**callbacks)

    async def _run(self, name: str, *args: Any) -> None:
        hook = getattr(self._hooks, name)
        if hook is None:
            return
        logger.debug(f"Running policy hook {name}", extra={"hook": name})
        result = hook(*args)
        if inspect.isawaitable(result):
            await result

    async def run_before_create(self, ctx: PolicyContext) -> None:
        await self._run("before_create", ctx)

    async def run_after_create(self, ctx: PolicyContext, created_doc: Any) -> None:
        await self._run("after_create", ctx, created_doc)

    async def run_before_update(self, ctx: PolicyContext) -> None:
        await self._run("before_update", ctx)

    async def run_after_update(self, ctx: PolicyContext, updated_doc: Any) -> None:
        await self._run("after_update", ctx, updated_doc)

    async def run_before_delete(self, ctx: PolicyContext) -> None:
        await self._run("before_delete", ctx)

    async def run_after_delete(self, ctx: PolicyContext) -> None:
        await self._run("after_delete", ctx)
