"""Condition algebra used by rules to route a turn.

Leaf conditions inspect the session or the per-turn data; And, Or and Not
compose them (also available as the &, | and ~ operators).
"""

from colloquy.conditions.base import And, Condition, Not, Or
from colloquy.conditions.builtin import (
    COLLECTED_DATA_KEY,
    USER_INPUT_KEY,
    Always,
    Contains,
    Count,
    DataEquals,
    DataKeyExists,
    Func,
    Missing,
    Never,
    find_missing,
)
from colloquy.conditions.semantic import all_missing, any_missing, none_of

__all__ = [
    "Condition",
    "And",
    "Or",
    "Not",
    "Always",
    "Never",
    "Contains",
    "Count",
    "DataEquals",
    "DataKeyExists",
    "Func",
    "Missing",
    "find_missing",
    "any_missing",
    "all_missing",
    "none_of",
    "COLLECTED_DATA_KEY",
    "USER_INPUT_KEY",
]
