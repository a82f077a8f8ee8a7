"""Composer Tycoon: a nineteenth-century composer career simulation."""
from .service import ActionRejected, GameService
from .simulation import add_log_entry, advance_week, create_initial_state

__all__ = [
    "ActionRejected",
    "GameService",
    "add_log_entry",
    "advance_week",
    "create_initial_state",
]
