# =============================================================================
# wardrobe_core/errors/handlers.py
# Error Handling Utilities for the Wardrobe Sync Core
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Optional, Callable, TypeVar, Any
import streamlit as st

from wardrobe_core.logging import get_logger
from .exceptions import WardrobeError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        show_user_message: Whether to display error to user via st.error
        log_error: Whether to log the error
        user_message: Custom message to show user (uses error message if None)
    """
    if isinstance(error, WardrobeError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=error,
        )

    if show_user_message:
        if recoverable:
            st.error(f"Error: {message}")
        else:
            st.error(f"Critical Error: {message}. Please contact support.")

        if details and st.session_state.get("debug_mode", False):
            with st.expander("Error Details", expanded=False):
                st.json(details)


def error_boundary(
    default_return: Any = None,
    default_factory: Optional[Callable[[], Any]] = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator to wrap best-effort functions: failures are logged and a
    default is returned instead of propagating.

    Args:
        default_return: Value to return if function fails
        default_factory: Callable producing the default (for mutable defaults)
        error_message: Custom message shown to the user via st.error
        log: Whether to log errors

    Usage:
        @error_boundary(default_factory=list)
        def get_garments(self, owner_id: str) -> List[GarmentRecord]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.error(
                        f"Error in {func.__name__}: {e}",
                        exc_info=True,
                    )
                if error_message:
                    st.error(error_message)
                if default_factory is not None:
                    return default_factory()
                return default_return

        return wrapper

    return decorator
