"""
Pydantic models for upstream payloads and proxy responses.

Entity models mirror the PokeAPI ``/pokemon/{id}`` document closely
enough that the upstream JSON validates straight into them. They are
frozen: once fetched, an entity is never modified.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class NamedResource(_Frozen):
    name: str
    url: str = ""


class PokemonType(_Frozen):
    slot: int = Field(..., ge=1)
    type: NamedResource


class Ability(_Frozen):
    is_hidden: bool = False
    slot: int = 1
    ability: NamedResource


class Stat(_Frozen):
    base_stat: int
    effort: int = 0
    stat: NamedResource


class Sprites(_Frozen):
    front_default: Optional[str] = None
    front_shiny: Optional[str] = None
    back_default: Optional[str] = None
    back_shiny: Optional[str] = None


class Pokemon(_Frozen):
    """A fetched creature record."""

    id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    height: int = 0
    weight: int = 0
    base_experience: Optional[int] = None
    types: List[PokemonType] = Field(default_factory=list)
    abilities: List[Ability] = Field(default_factory=list)
    stats: List[Stat] = Field(default_factory=list)
    sprites: Sprites = Field(default_factory=Sprites)

    @property
    def type_names(self) -> List[str]:
        """Type names in slot order."""
        return [t.type.name for t in sorted(self.types, key=lambda t: t.slot)]

    @property
    def primary_type(self) -> str:
        """Slot-1 type name, or "" when the pokemon has no types."""
        for t in self.types:
            if t.slot == 1:
                return t.type.name
        return ""


class PokemonList(_Frozen):
    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[NamedResource] = Field(default_factory=list)


class PokemonCount(_Frozen):
    count: int


class PokemonComparison(_Frozen):
    message: str
    type_advantage: Optional[str] = None
    winner: Optional[Pokemon] = None
    pokemon1: Pokemon
    pokemon2: Pokemon
