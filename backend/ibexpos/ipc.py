# Overview: Channel registry for the IPC surface; route modules register handlers here.

"""
IPC channel registry.

The desktop client talks to the backend through named channels
("sales:create", "customer-portal:get-orders", ...). Each channel is a plain
function taking positional arguments, registered with its access level and
the Arabic message shown when it fails unexpectedly.

USAGE:
    from ibexpos.ipc import channel

    @channel("expenses:get-all", failure="فشل جلب المصروفات")
    def get_all(store_id=None):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from . import messages
from .decorators import ACCESS_LEVELS, ACCESS_STAFF


@dataclass(frozen=True)
class Channel:
    name: str
    handler: Callable
    access: str = ACCESS_STAFF
    failure: str = messages.INTERNAL_ERROR


_registry: dict[str, Channel] = {}


def channel(name: str, *, access: str = ACCESS_STAFF, failure: str = messages.INTERNAL_ERROR):
    if access not in ACCESS_LEVELS:
        raise ValueError(f"Unknown access level {access!r} for channel {name}")

    def decorator(func):
        if name in _registry:
            raise RuntimeError(f"IPC channel already registered: {name}")
        _registry[name] = Channel(name=name, handler=func, access=access, failure=failure)
        return func

    return decorator


def get_channel(name: str) -> Channel | None:
    return _registry.get(name)


def channel_names() -> list[str]:
    return sorted(_registry)
