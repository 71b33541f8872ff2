"""
Tests for PokemonService validation and orchestration.
"""

import pytest

from conftest import FakeClient

from pokeproxy.cancellation import CallContext
from pokeproxy.errors import (
    InvalidInputError,
    InvalidLimitError,
    InvalidOffsetError,
    NotFoundError,
    UnexpectedError,
    UpstreamError,
    ValidationError,
)
from pokeproxy.service import PokemonService, normalize_key


@pytest.fixture
def service(fake_client, quiet_logger):
    return PokemonService(fake_client, logger=quiet_logger)


@pytest.fixture
def ctx():
    return CallContext()


class TestNormalizeKey:
    def test_trims_and_lowercases(self):
        assert normalize_key("  PikaChu \t") == "pikachu"

    def test_none(self):
        assert normalize_key(None) == ""


class TestGetByKey:
    @pytest.mark.parametrize("token", ["", "   ", "\n\t"])
    def test_empty_token_is_invalid(self, service, fake_client, ctx, token):
        with pytest.raises(InvalidInputError):
            service.get_by_key(ctx, token)
        assert fake_client.calls == []

    def test_normalizes_before_fetching(self, service, fake_client, ctx):
        pokemon = service.get_by_key(ctx, "  PIKACHU ")
        assert pokemon.name == "pikachu"
        assert fake_client.calls == [("fetch_pokemon", "pikachu")]

    def test_by_id(self, service, ctx):
        assert service.get_by_key(ctx, "25").name == "pikachu"

    def test_not_found_propagates(self, service, ctx):
        with pytest.raises(NotFoundError):
            service.get_by_key(ctx, "nonexistent123")

    def test_upstream_error_propagates(self, quiet_logger, ctx):
        client = FakeClient(errors={"pikachu": UpstreamError("failed after 3 attempts")})
        service = PokemonService(client, logger=quiet_logger)

        with pytest.raises(UpstreamError):
            service.get_by_key(ctx, "pikachu")

    def test_unexpected_client_error_is_wrapped(self, quiet_logger, ctx):
        client = FakeClient(errors={"pikachu": KeyError("types")})
        service = PokemonService(client, logger=quiet_logger)

        with pytest.raises(UnexpectedError) as excinfo:
            service.get_by_key(ctx, "pikachu")
        assert isinstance(excinfo.value.__cause__, KeyError)


class TestCompare:
    def test_compare(self, service, fake_client, ctx):
        result = service.compare(ctx, "Charmander", "bulbasaur")

        assert result.winner.name == "charmander"
        assert "fire" in result.message and "grass" in result.message
        assert fake_client.calls == [
            ("fetch_pokemon", "charmander"),
            ("fetch_pokemon", "bulbasaur"),
        ]

    def test_compare_reversed(self, service, ctx):
        result = service.compare(ctx, "bulbasaur", "charmander")
        assert result.winner.name == "charmander"
        assert result.pokemon1.name == "bulbasaur"

    @pytest.mark.parametrize("first,second", [
        ("pikachu", "pikachu"),
        ("Pikachu", "  pikachu "),
        ("25", "25 "),
    ])
    def test_same_pokemon_is_rejected(self, service, fake_client, ctx, first, second):
        with pytest.raises(InvalidInputError, match="itself"):
            service.compare(ctx, first, second)
        assert fake_client.calls == []

    @pytest.mark.parametrize("first,second", [("", "pikachu"), ("pikachu", "  "), ("", "")])
    def test_empty_names_are_rejected(self, service, fake_client, ctx, first, second):
        with pytest.raises(InvalidInputError):
            service.compare(ctx, first, second)
        assert fake_client.calls == []

    def test_second_fetch_skipped_when_first_fails(self, service, fake_client, ctx):
        with pytest.raises(NotFoundError):
            service.compare(ctx, "missingno", "pikachu")
        assert fake_client.calls == [("fetch_pokemon", "missingno")]

    def test_first_error_wins(self, quiet_logger, charmander, ctx):
        client = FakeClient(
            [charmander],
            errors={
                "a": UpstreamError("a failed"),
                "b": NotFoundError(),
            },
        )
        service = PokemonService(client, logger=quiet_logger)

        with pytest.raises(UpstreamError, match="a failed"):
            service.compare(ctx, "a", "b")


class TestList:
    @pytest.mark.parametrize("limit,offset,error", [
        (0, 0, InvalidLimitError),
        (101, 0, InvalidLimitError),
        (-5, 0, InvalidLimitError),
        (5, -1, InvalidOffsetError),
    ])
    def test_bounds(self, service, fake_client, ctx, limit, offset, error):
        with pytest.raises(error) as excinfo:
            service.list(ctx, limit, offset)
        assert isinstance(excinfo.value, ValidationError)
        assert fake_client.calls == []

    @pytest.mark.parametrize("limit", [1, 20, 100])
    def test_valid_limits(self, service, fake_client, ctx, limit):
        result = service.list(ctx, limit, 0)
        assert result.count == fake_client.count
        assert fake_client.calls == [("fetch_pokemon_list", limit, 0)]

    def test_passes_result_through(self, service, fake_client, ctx):
        result = service.list(ctx, 2, 1)
        assert [r.name for r in result.results] == ["charmander", "pikachu"]


class TestCount:
    def test_count(self, service, ctx):
        assert service.get_count(ctx).count == 1302
