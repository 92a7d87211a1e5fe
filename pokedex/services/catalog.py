"""
Catalog aggregation service.

PokeAPI only supports offset/limit pagination over an id-ordered listing.
This service adds name sorting and substring search on top of it by keeping
an in-memory snapshot of the whole catalog (up to ``index_limit`` rows),
refreshed after ``ttl_seconds``.

PARTIAL FAILURES:
Operations that resolve many detail documents drop the rows that fail,
log them, and flag the result ``partial``. Single lookups (one page call,
one detail, one id search) fail the whole operation. Nothing is retried.

CONCURRENCY:
Detail fetches run concurrently inside a batch of ``batch_size`` requests;
batches run one after another to bound open connections. Results keep
input order. Concurrent readers of an expired cache await the same refresh.
A refresh that resolves nothing, or that was started before invalidate(),
is returned to its waiters but not stored.
"""

import asyncio
import logging
import re
import time
from collections.abc import Callable, Sequence
from typing import Any

from pokedex.clients.pokeapi import FetchError, PokeApiClient
from pokedex.config import SORT_KEYS
from pokedex.models.catalog import (
    CatalogDetail,
    CatalogEntry,
    CatalogPage,
    CatalogSnapshot,
    IndexEntry,
)
from pokedex.models.failure import (
    FailureKind,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from pokedex.parsers.pokeapi import (
    PayloadError,
    entry_from_pokemon,
    parse_detail,
    parse_entry,
    parse_count,
    parse_index,
    species_url,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_INDEX_LIMIT = 2000
DEFAULT_BATCH_SIZE = 50

LIST_FAILED_MESSAGE = "Failed to fetch Pokemon list"
DETAIL_FAILED_MESSAGE = "Failed to fetch Pokemon details"
SEARCH_FAILED_MESSAGE = "Failed to search for Pokemon"
INVALID_SORT_MESSAGE = 'Sort must be either "number" or "name"'

_NUMERIC_QUERY = re.compile(r"[0-9]+")


class CatalogService:
    """
    Paginated, sortable, searchable views over the upstream catalog.

    Owns the catalog snapshot. Create one per application (or per test).
    """

    def __init__(
        self,
        client: PokeApiClient,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        index_limit: int = DEFAULT_INDEX_LIMIT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if index_limit < 1:
            raise ValueError(f"index_limit must be positive, got {index_limit}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._client = client
        self.ttl_seconds = ttl_seconds
        self.index_limit = index_limit
        self.batch_size = batch_size
        self._clock = clock

        self._snapshot: CatalogSnapshot | None = None
        self._refresh_task: asyncio.Task[CatalogSnapshot] | None = None
        # Bumped by invalidate; a refresh started under an older value is not stored
        self._generation = 0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_page(self, limit: int, offset: int) -> CatalogPage:
        """
        Fetch one upstream page and resolve its entries.

        Upstream ``count``, ``next`` and ``previous`` are passed through.

        Raises:
            UpstreamError: If the page request fails
        """
        try:
            body = await self._client.list_pokemon(limit, offset)
            rows = parse_index(body)
            count = parse_count(body, len(rows))
        except (FetchError, PayloadError) as e:
            logger.error("Error fetching Pokemon list: %s", e)
            raise UpstreamError(LIST_FAILED_MESSAGE, detail=str(e)) from e

        resolved = await self._resolve_entries(rows)
        results = [entry for entry in resolved if entry is not None]

        return CatalogPage(
            count=count,
            results=results,
            next=body.get("next"),
            previous=body.get("previous"),
            partial=len(results) < len(rows),
        )

    async def sorted_page(self, limit: int, offset: int, sort_key: str) -> CatalogPage:
        """
        Page through the catalog in the requested order.

        ``number`` is upstream order, so it is served by list_page.
        ``name`` sorts the snapshot index by case-sensitive name before
        slicing. ``count`` is the size of the whole index.

        Raises:
            ValidationError: If sort_key is not a known key
            UpstreamError: If the listing cannot be fetched
        """
        if sort_key not in SORT_KEYS:
            raise ValidationError(INVALID_SORT_MESSAGE)

        if sort_key == "number":
            return await self.list_page(limit, offset)

        snapshot = await self.get_snapshot()
        ordered = sorted(snapshot.index, key=lambda row: row.name)
        return _page_from_snapshot(
            snapshot,
            ordered[offset : offset + limit],
            count=len(snapshot.index),
        )

    async def search(
        self,
        query: str,
        limit: int,
        offset: int,
        sort_key: str | None = None,
    ) -> CatalogPage:
        """
        Search the catalog.

        An all-digit query is an exact id lookup: a miss returns an empty
        page, not an error. Any other query is a case-insensitive substring
        match over every indexed name. ``count`` is the number of matches
        before pagination.

        Raises:
            ValidationError: If the query is blank or sort_key is unknown
            UpstreamError: If upstream fails
        """
        query = (query or "").strip()
        if not query:
            raise ValidationError(
                "Search query must not be empty", kind=FailureKind.MISSING_REQUIRED
            )
        if sort_key is not None and sort_key not in SORT_KEYS:
            raise ValidationError(INVALID_SORT_MESSAGE)

        if _NUMERIC_QUERY.fullmatch(query):
            return await self._search_by_id(int(query), limit, offset)

        snapshot = await self.get_snapshot()
        needle = query.lower()
        matches = [row for row in snapshot.index if needle in row.name.lower()]
        if sort_key == "name":
            matches.sort(key=lambda row: row.name)

        return _page_from_snapshot(
            snapshot,
            matches[offset : offset + limit],
            count=len(matches),
        )

    async def detail(self, id_or_name: str | int) -> CatalogDetail:
        """
        Fetch the full record for one Pokemon.

        Two upstream calls: the pokemon document, then its species document.

        Raises:
            ValidationError: If id_or_name is blank
            NotFoundError: If upstream has no such Pokemon
            UpstreamError: For any other failure
        """
        requested = str(id_or_name).strip()
        if not requested:
            raise ValidationError("Pokemon ID is required", kind=FailureKind.MISSING_REQUIRED)

        try:
            pokemon = await self._client.get_pokemon(requested.lower())
        except FetchError as e:
            if e.is_not_found:
                raise NotFoundError(f"Pokemon with ID {requested} not found") from e
            logger.error("Error fetching Pokemon details for %s: %s", requested, e)
            raise UpstreamError(DETAIL_FAILED_MESSAGE, detail=str(e)) from e

        try:
            species = await self._client.get_resource(species_url(pokemon))
            return parse_detail(pokemon, species)
        except (FetchError, PayloadError) as e:
            logger.error("Error fetching species for %s: %s", requested, e)
            raise UpstreamError(DETAIL_FAILED_MESSAGE, detail=str(e)) from e

    # -------------------------------------------------------------------------
    # Snapshot cache
    # -------------------------------------------------------------------------

    async def get_snapshot(self) -> CatalogSnapshot:
        """
        Return the cached snapshot, refreshing it first if missing or stale.

        Within the TTL this makes no upstream calls. Concurrent callers
        share a single in-flight refresh.

        Raises:
            UpstreamError: If the index request fails
        """
        snapshot = self._snapshot
        if snapshot is not None and not snapshot.is_expired(self._clock(), self.ttl_seconds):
            return snapshot

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh_snapshot(self._generation))
            self._refresh_task.add_done_callback(self._clear_refresh_task)

        # Shielded so one cancelled request does not cancel the refresh for the rest
        return await asyncio.shield(self._refresh_task)

    def invalidate(self) -> None:
        """
        Drop the snapshot; the next read refreshes it.

        A refresh already in flight still answers its waiting callers but
        its result is not cached.
        """
        self._snapshot = None
        self._refresh_task = None
        self._generation += 1

    def cache_status(self) -> dict[str, Any]:
        """Current cache diagnostics."""
        snapshot = self._snapshot
        status: dict[str, Any] = {
            "cached": snapshot is not None,
            "refreshing": self._refresh_task is not None,
            "ttl_seconds": self.ttl_seconds,
            "index_limit": self.index_limit,
            "age_seconds": None,
            "entries": 0,
            "missing": 0,
        }
        if snapshot is not None:
            status["age_seconds"] = round(self._clock() - snapshot.created_at, 3)
            status["entries"] = len(snapshot.entries)
            status["missing"] = snapshot.missing
        return status

    async def _refresh_snapshot(self, generation: int) -> CatalogSnapshot:
        try:
            body = await self._client.list_pokemon(self.index_limit, 0)
            index = parse_index(body)
        except (FetchError, PayloadError) as e:
            logger.error("Error fetching catalog index: %s", e)
            raise UpstreamError(LIST_FAILED_MESSAGE, detail=str(e)) from e

        resolved = await self._resolve_entries(index)
        entries = tuple(entry for entry in resolved if entry is not None)

        snapshot = CatalogSnapshot(
            index=tuple(index),
            entries=entries,
            created_at=self._clock(),
            missing=len(index) - len(entries),
        )
        if index and not entries:
            # Nothing resolved: serve it to current callers, do not cache it
            logger.warning("CATALOG_SNAPSHOT_DISCARDED", extra={"indexed": len(index)})
            return snapshot
        if generation != self._generation:
            logger.info("CATALOG_SNAPSHOT_STALE", extra={"indexed": len(index)})
            return snapshot

        self._snapshot = snapshot

        logger.info(
            "CATALOG_SNAPSHOT_REFRESHED",
            extra={
                "indexed": len(snapshot.index),
                "entries": len(snapshot.entries),
                "missing": snapshot.missing,
            },
        )
        return snapshot

    def _clear_refresh_task(self, task: "asyncio.Task[CatalogSnapshot]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    # -------------------------------------------------------------------------
    # Detail resolution
    # -------------------------------------------------------------------------

    async def _search_by_id(self, pokemon_id: int, limit: int, offset: int) -> CatalogPage:
        try:
            pokemon = await self._client.get_pokemon(pokemon_id)
            entry = entry_from_pokemon(pokemon, self._client.base_url)
        except FetchError as e:
            if e.is_not_found:
                return CatalogPage(count=0, results=[])
            logger.error("Error searching Pokemon by id %d: %s", pokemon_id, e)
            raise UpstreamError(SEARCH_FAILED_MESSAGE, detail=str(e)) from e
        except PayloadError as e:
            logger.error("Error searching Pokemon by id %d: %s", pokemon_id, e)
            raise UpstreamError(SEARCH_FAILED_MESSAGE, detail=str(e)) from e

        return CatalogPage(count=1, results=[entry][offset : offset + limit])

    async def _resolve_entries(self, rows: Sequence[IndexEntry]) -> list[CatalogEntry | None]:
        """
        Resolve rows in batches. Position i of the result belongs to rows[i];
        None marks a row whose detail could not be fetched.
        """
        resolved: list[CatalogEntry | None] = []
        for start in range(0, len(rows), self.batch_size):
            batch = rows[start : start + self.batch_size]
            resolved.extend(await asyncio.gather(*(self._resolve_entry(row) for row in batch)))
        return resolved

    async def _resolve_entry(self, row: IndexEntry) -> CatalogEntry | None:
        try:
            pokemon = await self._client.get_resource(row.url)
            return parse_entry(row, pokemon)
        except (FetchError, PayloadError) as e:
            logger.warning(
                "DETAIL_FETCH_FAILED",
                extra={"pokemon": row.name, "url": row.url, "error": str(e)},
            )
            return None


def _page_from_snapshot(
    snapshot: CatalogSnapshot,
    window: Sequence[IndexEntry],
    count: int,
) -> CatalogPage:
    """Map a window of index rows to resolved entries, dropping unresolved ones."""
    by_name = snapshot.entries_by_name()
    results = [by_name[row.name] for row in window if row.name in by_name]
    return CatalogPage(count=count, results=results, partial=len(results) < len(window))
