# Utils package
from .text import format_label

__all__ = [
    "format_label",
]
