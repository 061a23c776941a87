"""Backends for quizdeck output rendering (plain text)."""

from .text_report import (
    render_current_deck,
    render_dashboard,
    render_deck_list,
    render_question_detail,
    render_session_summary,
)

__all__ = [
    "render_current_deck",
    "render_dashboard",
    "render_deck_list",
    "render_question_detail",
    "render_session_summary",
]
