"""
PokeAPI client with timeouts, outcome classification and retries.

Each attempt is classified as:
- success: HTTP 200 with a body that validates into the target model
- not found: HTTP 404, returned immediately, never retried
- cancelled: the caller's context is done, returned immediately
- transient: anything else (other status, network error, bad body)

Transient attempts are retried by ``retry.retry_call``. Each GET runs on a
worker thread so a cancel or deadline ends the wait right away; the
abandoned response is closed once it arrives.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from . import __version__
from .cancellation import CallContext
from .errors import NotFoundError, RequestCancelledError, UpstreamError
from .logger import StructuredLogger, get_logger
from .models import Pokemon, PokemonList
from .retry import DEFAULT_POLICY, RetryPolicy, TransientError, retry_call

M = TypeVar("M", bound=BaseModel)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": f"pokeproxy/{__version__}",
}

# Workers for in-flight GETs (bounded to be polite to PokeAPI)
MAX_WORKERS = 8


def _close_abandoned(future: Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class PokemonClient(Protocol):
    """What the service layer needs from an upstream transport."""

    def fetch_pokemon(self, ctx: CallContext, name_or_id: str) -> Pokemon:
        ...

    def fetch_pokemon_list(self, ctx: CallContext, limit: int, offset: int) -> PokemonList:
        ...

    def fetch_pokemon_count(self, ctx: CallContext) -> int:
        ...


class PokeAPIClient:
    """
    HTTP client for the PokeAPI REST API.

    Args:
        base_url: API root, e.g. https://pokeapi.co/api/v2
        timeout: Per-attempt timeout in seconds (capped by the ctx deadline)
        logger: Structured logger (defaults to the global one)
        session: requests.Session to send requests with
        policy: Retry policy
        executor: Thread pool the GETs run on
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        logger: Optional[StructuredLogger] = None,
        session: Optional[requests.Session] = None,
        policy: RetryPolicy = DEFAULT_POLICY,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or get_logger()
        self.session = session or requests.Session()
        self.policy = policy
        self.executor = executor or ThreadPoolExecutor(
            max_workers=MAX_WORKERS, thread_name_prefix="pokeapi"
        )

    def fetch_pokemon(self, ctx: CallContext, name_or_id: str) -> Pokemon:
        """Fetch one pokemon. ``name_or_id`` is expected lower-cased and trimmed."""
        url = f"{self.base_url}/pokemon/{name_or_id}"
        self.logger.debug("Fetching Pokemon", name_or_id=name_or_id, url=url)

        try:
            pokemon = self._fetch(ctx, url, Pokemon)
        except NotFoundError:
            self.logger.debug("Pokemon not found", name_or_id=name_or_id)
            raise
        except UpstreamError as e:
            self.logger.error("Failed to fetch Pokemon", name_or_id=name_or_id, error=str(e))
            raise

        self.logger.info("Successfully fetched Pokemon", name=pokemon.name, id=pokemon.id)
        return pokemon

    def fetch_pokemon_list(self, ctx: CallContext, limit: int, offset: int) -> PokemonList:
        """Fetch one page of the pokemon index. Parameters are passed through as-is."""
        url = f"{self.base_url}/pokemon"
        params = {"limit": limit, "offset": offset}
        self.logger.debug("Fetching Pokemon list", limit=limit, offset=offset)

        try:
            return self._fetch(ctx, url, PokemonList, params=params)
        except UpstreamError as e:
            self.logger.error("Failed to fetch Pokemon list", limit=limit, offset=offset, error=str(e))
            raise

    def fetch_pokemon_count(self, ctx: CallContext) -> int:
        """Total number of pokemon known upstream."""
        url = f"{self.base_url}/pokemon"
        try:
            page = self._fetch(ctx, url, PokemonList, params={"limit": 1})
        except UpstreamError as e:
            self.logger.error("Failed to fetch Pokemon count", error=str(e))
            raise
        return page.count

    def _fetch(self, ctx: CallContext, url: str, model: Type[M], params: Optional[dict] = None) -> M:
        def on_retry(attempt: int, error: Exception, delay: float):
            self.logger.record_retry()
            self.logger.debug(
                "Retrying request",
                url=url,
                attempt=attempt,
                max_attempts=self.policy.max_attempts,
                delay=delay,
                error=str(error),
            )

        try:
            return retry_call(
                lambda: self._attempt(ctx, url, model, params),
                ctx,
                policy=self.policy,
                on_retry=on_retry,
            )
        except RequestCancelledError:
            self.logger.record_upstream_failure("Cancelled")
            self.logger.warning("Upstream request cancelled", url=url, reason=ctx.reason())
            raise
        except UpstreamError as e:
            self.logger.warning("Max retries exceeded", url=url, error=str(e.__cause__ or e))
            raise

    def _attempt(self, ctx: CallContext, url: str, model: Type[M], params: Optional[dict]) -> M:
        """One GET, classified. Raises NotFoundError, TransientError or RequestCancelledError."""
        if ctx.done:
            raise RequestCancelledError(ctx.reason())

        self.logger.record_upstream_call()
        future = self.executor.submit(
            self.session.get,
            url,
            params=params,
            headers=DEFAULT_HEADERS,
            timeout=ctx.timeout_for(self.timeout),
        )
        finished = ctx.wait_for(future)
        if not finished or ctx.done:
            # A late 200 after cancellation is still a cancellation
            if not future.cancel():
                future.add_done_callback(_close_abandoned)
            raise RequestCancelledError(ctx.reason())

        try:
            resp = future.result()
        except requests.exceptions.RequestException as e:
            error_type = "Timeout" if isinstance(e, requests.exceptions.Timeout) else "RequestException"
            self.logger.record_upstream_failure(error_type)
            raise TransientError(f"failed to execute request: {e}") from e

        if resp.status_code == 404:
            self.logger.record_upstream_failure("HTTPError_404")
            raise NotFoundError()

        if resp.status_code != 200:
            self.logger.record_upstream_failure(f"HTTPError_{resp.status_code}")
            self.logger.debug("HTTP error", url=url, status_code=resp.status_code, body=resp.text[:500])
            raise TransientError(f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            result = model.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            self.logger.record_upstream_failure("DecodeError")
            raise TransientError(f"failed to decode response: {e}") from e

        self.logger.record_upstream_success()
        return result
