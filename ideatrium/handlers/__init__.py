"""
Handler modules with automatic API registration
Functions decorated with @api_handler are collected in a registry and
mounted on a FastAPI application by register_fastapi_routes
"""

import inspect
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Type, TypeVar

from fastapi import Request

from ideatrium.core.errors import IdeatriumError, ValidationError
from ideatrium.core.logger import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from ideatrium.core.live import LiveCollection
    from ideatrium.core.records import RecordManager
    from ideatrium.core.services import AppServices

F = TypeVar("F", bound=Callable[..., Any])

USER_HEADER = "X-User-Id"

logger = get_logger(__name__)

# Global API handler registry
_handler_registry: Dict[str, Dict[str, Any]] = {}


def api_handler(
    body: Optional[Type] = None,
    method: str = "POST",
    path: Optional[str] = None,
    tags: Optional[List[str]] = None,
    summary: Optional[str] = None,
    description: Optional[str] = None,
):
    """
    API handler decorator

    @param body - Optional request model type for parameter validation
    @param method - HTTP method (GET, POST, PUT, DELETE, PATCH)
    @param path - Route path below the API prefix
    @param tags - API tags
    @param summary - API summary
    @param description - API description
    """

    def decorator(func: F) -> F:
        func_name = getattr(func, "__name__", "unknown")
        func_module = getattr(func, "__module__", "")
        module_name = func_module.split(".")[-1] if func_module else "unknown"
        func_doc = getattr(func, "__doc__", None)

        _handler_registry[func_name] = {
            "func": func,
            "body": body,
            "method": method.upper(),
            "path": path or f"/{func_name}",
            "tags": tags or [module_name],
            "module": module_name,
            "summary": summary or (func_doc.split("\n")[0] if func_doc else func_name),
            "description": description or func_doc or "",
            "signature": inspect.signature(func),
        }

        # Keep original function unchanged
        return func

    return decorator


def get_registered_handlers() -> Dict[str, Dict[str, Any]]:
    """
    Get registered handler information (for debugging)

    @returns Handler registry
    """
    return _handler_registry.copy()


def register_fastapi_routes(app: "FastAPI", prefix: str = "/api") -> None:
    """
    Register all functions decorated with @api_handler as FastAPI routes

    @param app - FastAPI application instance
    @param prefix - Route prefix
    """
    logger.info(f"Starting FastAPI route registration, {len(_handler_registry)} handlers")

    for handler_name, handler_info in _handler_registry.items():
        method = handler_info["method"]
        full_path = f"{prefix}{handler_info['path']}"

        if method not in ("GET", "POST", "PUT", "DELETE", "PATCH"):
            logger.warning(f"Unknown HTTP method: {method} for {handler_name}")
            continue

        app.add_api_route(
            full_path,
            handler_info["func"],
            methods=[method],
            tags=handler_info["tags"],
            summary=handler_info["summary"],
            description=handler_info["description"],
            response_model=None,
        )
        logger.debug(
            f"✓ Registered route: {method} {full_path} "
            f"({handler_name} from {handler_info['module']})"
        )

    logger.info(f"FastAPI route registration completed: {len(_handler_registry)} routes")


# ============ Request helpers ============


def get_services(request: Request) -> "AppServices":
    return request.app.state.services


def get_user_id(request: Request) -> Optional[str]:
    user_id = request.headers.get(USER_HEADER, "").strip()
    return user_id or None


def get_records(request: Request) -> "RecordManager":
    """Record manager bound to the calling user"""
    return get_services(request).records_for(get_user_id(request))


def live_ideas(request: Request) -> "LiveCollection":
    return get_services(request).live_ideas(get_user_id(request))


def live_tasks(request: Request) -> "LiveCollection":
    return get_services(request).live_tasks(get_user_id(request))


def success_response(data: Any = None) -> Dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "timestamp": datetime.now().isoformat(),
    }


def error_response(error: IdeatriumError) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "success": False,
        "error": error.code,
        "message": error.message,
        "timestamp": datetime.now().isoformat(),
    }
    if isinstance(error, ValidationError):
        response["errors"] = list(error.errors)
    return response


# Import all handler modules to trigger decorator registration
# Note: These imports must be after all decorator definitions to avoid circular imports
# ruff: noqa: E402
from . import ai, ideas, tags, tasks

__all__ = [
    "api_handler",
    "register_fastapi_routes",
    "get_registered_handlers",
    "get_services",
    "get_user_id",
    "get_records",
    "success_response",
    "error_response",
    "ai",
    "ideas",
    "tags",
    "tasks",
]
