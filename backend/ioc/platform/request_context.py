from contextvars import ContextVar
from typing import Optional

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_loop_id_ctx: ContextVar[Optional[str]] = ContextVar("loop_id", default=None)


def set_request_id(request_id: str):
    return _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def set_loop_id(loop_id: Optional[str]):
    return _loop_id_ctx.set(loop_id)


def reset_loop_id(token) -> None:
    _loop_id_ctx.reset(token)


def get_loop_id() -> Optional[str]:
    return _loop_id_ctx.get()
