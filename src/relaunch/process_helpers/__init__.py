"""Process-group primitives used by the supervisor."""

from .process_group import (
    KillOutcome,
    group_members,
    interrupt_process_group,
    spawn_in_new_group,
)

__all__ = [
    "KillOutcome",
    "group_members",
    "interrupt_process_group",
    "spawn_in_new_group",
]
