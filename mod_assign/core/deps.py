from typing import Callable

from fastapi import Request

from mod_assign.core.context import system_clock
from mod_assign.db.session import SessionLocal
from mod_assign.services.plugins import PluginRegistry


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# overridden in tests to pin "now"
def get_clock() -> Callable[[], int]:
    return system_clock


# plugin registry is built once at startup, see main.on_startup
def get_registry(request: Request) -> PluginRegistry:
    return request.app.state.registry
