"""
Type-matchup comparison engine.

Responsibilities:
- Find type advantages of each pokemon over the other.
- Pick a winner, or declare a tie / neutral matchup.
- Produce a human-readable verdict.

Non-Responsibilities:
- No fetching, no input validation (done by the service layer).

Invariant:
Pure function of its two inputs and the effectiveness table.
Swapping the inputs swaps the winner; it is not symmetric.
"""

from typing import List, Optional, Tuple

from .effectiveness import is_strong_against
from .models import Pokemon, PokemonComparison


def capitalize(name: str) -> str:
    """Upper-case the first character, leave the rest untouched."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def find_advantage(
    attacker_types: List[str],
    defender_types: List[str],
) -> Optional[Tuple[str, str]]:
    """
    Return the (attack_type, defense_type) pair giving the attacker an
    advantage, or None.

    When several pairs match, the last one in iteration order wins
    (attacker types outer, defender types inner).
    """
    match = None
    for attack_type in attacker_types:
        for defense_type in defender_types:
            if is_strong_against(attack_type, defense_type):
                match = (attack_type, defense_type)
    return match


def compare_pokemon(first: Pokemon, second: Pokemon) -> PokemonComparison:
    """Compare two pokemon by type effectiveness."""
    first_types = first.type_names
    second_types = second.type_names

    first_adv = find_advantage(first_types, second_types)
    second_adv = find_advantage(second_types, first_types)

    first_name = capitalize(first.name)
    second_name = capitalize(second.name)

    winner = None
    type_advantage = None

    if first_adv and not second_adv:
        winner = first
        message = f"{first_name} beats {second_name} because {first_adv[0]} beats {first_adv[1]}"
        type_advantage = f"{first_adv[0]} beats {first_adv[1]}"
    elif second_adv and not first_adv:
        winner = second
        message = f"{second_name} beats {first_name} because {second_adv[0]} beats {second_adv[1]}"
        type_advantage = f"{second_adv[0]} beats {second_adv[1]}"
    elif first_adv and second_adv:
        message = "Both have type advantages - it's a tie!"
        type_advantage = (
            f"{first_name}'s {first_adv[0]} beats {first_adv[1]}, "
            f"{second_name}'s {second_adv[0]} beats {second_adv[1]}"
        )
    else:
        message = (
            "No clear type advantage - neutral matchup between "
            f"{first.primary_type} {first_name} and {second.primary_type} {second_name}"
        )

    return PokemonComparison(
        message=message,
        type_advantage=type_advantage,
        winner=winner,
        pokemon1=first,
        pokemon2=second,
    )
