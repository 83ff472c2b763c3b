"""Rendering of commit templates and dispatch of classified changes."""

from .change_processor import ChangeProcessor, get_change_processor
from .templates import render, render_message
from .variables import SYSTEM_VARIABLES, resolve_variables

__all__ = [
    "ChangeProcessor",
    "SYSTEM_VARIABLES",
    "get_change_processor",
    "render",
    "render_message",
    "resolve_variables",
]
