"""
Pytest configuration and shared fixtures.
"""

from typing import Any, Dict, List, Optional

import pytest

from pokeproxy.errors import NotFoundError
from pokeproxy.logger import StructuredLogger, reset_logger
from pokeproxy.models import Pokemon, PokemonList


def make_payload(pokemon_id: int, name: str, types: List[str]) -> Dict[str, Any]:
    """Minimal PokeAPI /pokemon/{id} document."""
    return {
        "id": pokemon_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "base_experience": 64,
        "types": [
            {"slot": i + 1, "type": {"name": t, "url": f"https://pokeapi.co/api/v2/type/{t}/"}}
            for i, t in enumerate(types)
        ],
        "abilities": [
            {"is_hidden": False, "slot": 1, "ability": {"name": "overgrow", "url": ""}},
        ],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": {"name": "hp", "url": ""}},
            {"base_stat": 49, "effort": 1, "stat": {"name": "attack", "url": ""}},
        ],
        "sprites": {
            "front_default": f"https://img.example/{pokemon_id}.png",
            "front_shiny": None,
            "back_default": None,
            "back_shiny": None,
        },
    }


def make_pokemon(pokemon_id: int, name: str, types: List[str]) -> Pokemon:
    return Pokemon.model_validate(make_payload(pokemon_id, name, types))


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))
        self.closed = False

    def json(self):
        if self._payload is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def close(self):
        self.closed = True


class FakeSession:
    """
    Stand-in for requests.Session.

    Each get() consumes the next scripted item: an Exception is raised,
    anything else is returned as the response. The last item repeats.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item


class FakeClient:
    """In-memory PokemonClient keyed by lower-case name or id."""

    def __init__(self, pokemon: Optional[List[Pokemon]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.by_key: Dict[str, Pokemon] = {}
        for p in pokemon or []:
            self.by_key[p.name] = p
            self.by_key[str(p.id)] = p
        self.errors = errors or {}
        self.calls: List[tuple] = []
        self.count = 1302

    def fetch_pokemon(self, ctx, name_or_id):
        self.calls.append(("fetch_pokemon", name_or_id))
        if name_or_id in self.errors:
            raise self.errors[name_or_id]
        if name_or_id not in self.by_key:
            raise NotFoundError()
        return self.by_key[name_or_id]

    def fetch_pokemon_list(self, ctx, limit, offset):
        self.calls.append(("fetch_pokemon_list", limit, offset))
        names = sorted({p.name for p in self.by_key.values()})[offset:offset + limit]
        return PokemonList(
            count=self.count,
            results=[{"name": n, "url": f"https://pokeapi.co/api/v2/pokemon/{n}/"} for n in names],
        )

    def fetch_pokemon_count(self, ctx):
        self.calls.append(("fetch_pokemon_count",))
        return self.count


@pytest.fixture(autouse=True)
def _fresh_global_logger():
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    return StructuredLogger(name="pokeproxy-test", level="debug", enable_console=False)


@pytest.fixture
def charmander() -> Pokemon:
    return make_pokemon(4, "charmander", ["fire"])


@pytest.fixture
def bulbasaur() -> Pokemon:
    return make_pokemon(1, "bulbasaur", ["grass", "poison"])


@pytest.fixture
def squirtle() -> Pokemon:
    return make_pokemon(7, "squirtle", ["water"])


@pytest.fixture
def pikachu() -> Pokemon:
    return make_pokemon(25, "pikachu", ["electric"])


@pytest.fixture
def fake_client(charmander, bulbasaur, squirtle, pikachu) -> FakeClient:
    return FakeClient([charmander, bulbasaur, squirtle, pikachu])
