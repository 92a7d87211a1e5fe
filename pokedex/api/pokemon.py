"""
Pokemon API endpoints.

Paginated, sorted and searched listings plus the detail view. All routes
require a bearer token.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from pokedex.api.deps import get_catalog_service, require_session
from pokedex.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, SORT_KEYS
from pokedex.models.catalog import CatalogDetail, CatalogPage
from pokedex.models.failure import ErrorResponse, ValidationError
from pokedex.services.catalog import INVALID_SORT_MESSAGE, CatalogService

router = APIRouter(
    prefix="/pokemons",
    tags=["pokemon"],
    dependencies=[Depends(require_session)],
    responses={401: {"model": ErrorResponse}},
)


class PokemonSummary(BaseModel):
    """One row of a listing."""

    id: int
    name: str
    url: str
    image: str | None = None


class PokemonListResponse(BaseModel):
    """Response model for listing, sorting and searching."""

    count: int = Field(..., description="Total rows available before pagination")
    next: str | None = None
    previous: str | None = None
    results: list[PokemonSummary] = Field(default_factory=list)
    partial: bool = Field(
        default=False,
        description="True if some rows were dropped because their details failed to load",
    )


def page_to_response(page: CatalogPage) -> PokemonListResponse:
    return PokemonListResponse(
        count=page.count,
        next=page.next,
        previous=page.previous,
        results=[
            PokemonSummary(id=e.id, name=e.name, url=e.url, image=e.image) for e in page.results
        ],
        partial=page.partial,
    )


def validate_page_params(limit: int, offset: int, sort: str | None) -> None:
    """
    Check pagination and sort parameters.

    Runs before the catalog service is touched.

    Raises:
        ValidationError: Naming the violated constraint
    """
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_LIMIT}")
    if offset < 0:
        raise ValidationError("Offset must be non-negative")
    if sort and sort not in SORT_KEYS:
        raise ValidationError(INVALID_SORT_MESSAGE)


@router.get(
    "",
    response_model=PokemonListResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def list_pokemons(
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    limit: Annotated[int, Query(description="Rows per page (1-100)")] = DEFAULT_PAGE_LIMIT,
    offset: Annotated[int, Query(description="Rows to skip")] = 0,
    search: Annotated[str | None, Query(description="Name fragment or exact id")] = None,
    sort: Annotated[str | None, Query(description="number or name")] = None,
) -> PokemonListResponse:
    """
    List Pokemon.

    ``search`` takes precedence over ``sort``; with both, sort only orders
    the matches. Without either, upstream id order is used.
    """
    validate_page_params(limit, offset, sort)

    if search and search.strip():
        page = await catalog.search(search, limit, offset, sort_key=sort or None)
    elif sort:
        page = await catalog.sorted_page(limit, offset, sort)
    else:
        page = await catalog.list_page(limit, offset)

    return page_to_response(page)


@router.get(
    "/{pokemon_id}",
    response_model=CatalogDetail,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_pokemon(
    pokemon_id: str,
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
) -> CatalogDetail:
    """
    Get the full record for one Pokemon by id or name.

    Returns 404 if upstream does not know it.
    """
    return await catalog.detail(pokemon_id)
