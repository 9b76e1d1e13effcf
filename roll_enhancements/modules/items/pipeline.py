"""
Roll pipelines.

Every item roll primitive is a ``RollPipeline``: a base operation wrapped by
an ordered list of middleware. Each middleware gets three hooks:

- ``before(call)``: runs before anything further down the chain
- ``around(call, proceed)``: decides how (and how often) to call the rest of
  the chain; the default calls it once with the same call
- ``after(call, result)``: sees the chain's result and may replace it

The first registered middleware is the outermost. Registration is keyed by
middleware name, so installing the same behaviour twice is a no-op.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class RollCall:
    """
    One invocation travelling through a pipeline.

    Attributes:
        item: Item being rolled
        kwargs: Keyword arguments for the base operation
        state: Scratch space shared by one middleware's hooks
    """
    item: Any
    kwargs: Dict[str, Any]
    state: Dict[str, Any] = field(default_factory=dict)

    def with_kwargs(self, **overrides) -> 'RollCall':
        """A new call for the same item with some arguments replaced."""
        return replace(self, kwargs={**self.kwargs, **overrides}, state={})


class RollMiddleware:
    """Base class for pipeline middleware. Override any of the hooks."""

    name: str = 'middleware'

    def before(self, call: RollCall) -> None:
        pass

    def around(self, call: RollCall, proceed: Callable[[RollCall], Any]) -> Any:
        return proceed(call)

    def after(self, call: RollCall, result: Any) -> Any:
        return result


class RollPipeline:
    """
    A base roll operation plus the middleware installed over it.

    Usage:
        pipeline = RollPipeline('roll_damage', base_roll_damage)
        pipeline.use(DamageAggregationMiddleware(engine))
        parts = pipeline(item, formula_group=1)
    """

    def __init__(self, name: str, base: Callable[..., Any]):
        self.name = name
        self.base = base
        self.middleware: List[RollMiddleware] = []

    def use(self, middleware: RollMiddleware) -> bool:
        """
        Install middleware.

        Returns:
            True if installed, False if middleware with that name already was
        """
        if self.has(middleware.name):
            logger.debug(f"Middleware '{middleware.name}' already installed on {self.name}")
            return False
        self.middleware.append(middleware)
        logger.info(f"Installed middleware '{middleware.name}' on {self.name}")
        return True

    def has(self, name: str) -> bool:
        return any(m.name == name for m in self.middleware)

    def call_base(self, call: RollCall) -> Any:
        return self.base(call.item, **call.kwargs)

    def __call__(self, item, **kwargs) -> Any:
        return self._dispatch(0, RollCall(item=item, kwargs=dict(kwargs)))

    def _dispatch(self, index: int, call: RollCall) -> Any:
        if index >= len(self.middleware):
            return self.call_base(call)

        middleware = self.middleware[index]
        middleware.before(call)
        result = middleware.around(call, lambda inner: self._dispatch(index + 1, inner))
        return middleware.after(call, result)
