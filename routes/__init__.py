"""HTTP blueprints."""

from .chat import chat_bp
from .existing_order import existing_order_bp

__all__ = ["chat_bp", "existing_order_bp"]
