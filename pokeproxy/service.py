"""
Pokemon service: validates caller input and orchestrates client calls.

The service never retries; retries belong to the client. It only
normalizes tokens, checks bounds, and turns anything that is not a
domain error into UnexpectedError.
"""

from typing import Optional

from .cancellation import CallContext
from .client import PokemonClient
from .compare import compare_pokemon
from .errors import (
    InvalidInputError,
    InvalidLimitError,
    InvalidOffsetError,
    PokeProxyError,
    UnexpectedError,
)
from .logger import StructuredLogger, get_logger
from .models import Pokemon, PokemonComparison, PokemonCount, PokemonList

MIN_LIMIT = 1
MAX_LIMIT = 100


def normalize_key(name_or_id: Optional[str]) -> str:
    return (name_or_id or "").strip().lower()


class PokemonService:
    def __init__(self, client: PokemonClient, logger: Optional[StructuredLogger] = None):
        self.client = client
        self.logger = logger or get_logger()

    def get_by_key(self, ctx: CallContext, name_or_id: str) -> Pokemon:
        """Fetch a pokemon by name or numeric id (case and whitespace insensitive)."""
        key = normalize_key(name_or_id)
        if not key:
            self.logger.debug("Invalid input: empty name or ID")
            raise InvalidInputError("name or ID cannot be empty")

        self.logger.info("Getting Pokemon", name_or_id=key)
        pokemon = self._call(self.client.fetch_pokemon, ctx, key)
        self.logger.info("Successfully retrieved Pokemon", name=pokemon.name, id=pokemon.id)
        return pokemon

    def compare(self, ctx: CallContext, first: str, second: str) -> PokemonComparison:
        """
        Fetch both pokemon, first then second, and compare their types.

        The second fetch is skipped if the first one fails.
        """
        first_key = normalize_key(first)
        second_key = normalize_key(second)
        if not first_key or not second_key:
            raise InvalidInputError("both pokemon names are required")
        if first_key == second_key:
            raise InvalidInputError("cannot compare a pokemon with itself")

        self.logger.info("Comparing Pokemon", pokemon1=first_key, pokemon2=second_key)
        first_pokemon = self._call(self.client.fetch_pokemon, ctx, first_key)
        second_pokemon = self._call(self.client.fetch_pokemon, ctx, second_key)

        result = compare_pokemon(first_pokemon, second_pokemon)
        self.logger.info(
            "Comparison complete",
            pokemon1=first_key,
            pokemon2=second_key,
            winner=result.winner.name if result.winner else None,
        )
        return result

    def list(self, ctx: CallContext, limit: int, offset: int) -> PokemonList:
        if not MIN_LIMIT <= limit <= MAX_LIMIT:
            raise InvalidLimitError()
        if offset < 0:
            raise InvalidOffsetError()

        self.logger.info("Listing Pokemon", limit=limit, offset=offset)
        return self._call(self.client.fetch_pokemon_list, ctx, limit, offset)

    def get_count(self, ctx: CallContext) -> PokemonCount:
        count = self._call(self.client.fetch_pokemon_count, ctx)
        return PokemonCount(count=count)

    def _call(self, func, *args):
        try:
            return func(*args)
        except PokeProxyError:
            raise
        except Exception as e:
            self.logger.exception("Unexpected error from client", error_type=type(e).__name__)
            raise UnexpectedError(str(e)) from e
