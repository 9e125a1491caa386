"""UI utility functions."""

from src.ui.utils.error_handler import handle_error, get_user_message

__all__ = ["handle_error", "get_user_message"]
