"""
Static type-effectiveness table.

Maps each attacking type to the set of types it is strong against.
The table is built once at import time and never mutated, so it can be
read from any number of request threads without locking.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping

_STRONG_AGAINST = {
    "normal": (),
    "fire": ("grass", "ice", "bug", "steel"),
    "water": ("fire", "ground", "rock"),
    "electric": ("water", "flying"),
    "grass": ("water", "ground", "rock"),
    "ice": ("grass", "ground", "flying", "dragon"),
    "fighting": ("normal", "ice", "rock", "dark", "steel"),
    "poison": ("grass", "fairy"),
    "ground": ("fire", "electric", "poison", "rock", "steel"),
    "flying": ("grass", "fighting", "bug"),
    "psychic": ("fighting", "poison"),
    "bug": ("grass", "psychic", "dark"),
    "rock": ("fire", "ice", "flying", "bug"),
    "ghost": ("psychic", "ghost"),
    "dragon": ("dragon",),
    "dark": ("psychic", "ghost"),
    "steel": ("ice", "rock", "fairy"),
    "fairy": ("fighting", "dragon", "dark"),
}

TYPE_EFFECTIVENESS: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {attacker: frozenset(targets) for attacker, targets in _STRONG_AGAINST.items()}
)


def is_strong_against(attack_type: str, defense_type: str) -> bool:
    """Unknown attack types have no advantage. Lookups are case-sensitive."""
    return defense_type in TYPE_EFFECTIVENESS.get(attack_type, frozenset())
