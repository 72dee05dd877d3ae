# bookkeeping/mixins/__init__.py
from .actor_context import ActorContextMixin
from .service_exception_handler import ServiceExceptionHandlerMixin, WorkflowAPIException

__all__ = [
    "ActorContextMixin",
    "ServiceExceptionHandlerMixin",
    "WorkflowAPIException",
]
