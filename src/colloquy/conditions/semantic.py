"""Readable shorthands over the condition algebra."""

from colloquy.conditions.base import And, Condition, Not, Or
from colloquy.conditions.builtin import Missing


def any_missing(*fields: str) -> Condition:
    """True when any of the fields is missing."""
    if len(fields) == 1:
        return Missing(fields[0])
    return Or(*(Missing(field) for field in fields))


def all_missing(*fields: str) -> Condition:
    """True only when every one of the fields is missing."""
    if len(fields) == 1:
        return Missing(fields[0])
    return And(*(Missing(field) for field in fields))


def none_of(*conditions: Condition) -> Condition:
    """True when none of the conditions hold."""
    return Not(Or(*conditions))
