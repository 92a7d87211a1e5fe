"""
Catalog data model.

IndexEntry and CatalogEntry are the lightweight rows kept in the in-memory
snapshot. CatalogDetail is the full record for one Pokemon, assembled per
request from two upstream documents and never cached.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """One row of the upstream name/URL listing."""

    name: str
    url: str


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """
    Listing row merged with its detail record.

    Attributes:
        id: Upstream numeric id (positive, unique)
        name: Lowercase unique name
        url: Upstream detail URL the entry was resolved from
        image: Official artwork URL, falling back to the default sprite
    """

    id: int
    name: str
    url: str
    image: str | None = None


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """
    Complete in-memory index of the upstream catalog.

    Built in one piece and swapped in atomically, never mutated.
    ``entries`` keeps upstream id order and excludes rows whose detail
    could not be resolved; ``missing`` counts those rows.
    """

    index: tuple[IndexEntry, ...]
    entries: tuple[CatalogEntry, ...]
    created_at: float
    missing: int = 0

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at >= ttl_seconds

    def entries_by_name(self) -> dict[str, CatalogEntry]:
        return {entry.name: entry for entry in self.entries}


@dataclass(frozen=True, slots=True)
class CatalogPage:
    """A page of resolved entries plus pagination metadata."""

    count: int
    results: list[CatalogEntry] = field(default_factory=list)
    next: str | None = None
    previous: str | None = None
    partial: bool = False


# =============================================================================
# DETAIL RECORD
# =============================================================================


class PokemonImages(BaseModel):
    front_default: str | None = None
    front_shiny: str | None = None
    official_artwork: str | None = None


class PokemonType(BaseModel):
    slot: int
    name: str


class PokemonAbility(BaseModel):
    name: str
    is_hidden: bool
    slot: int


class ResourceRef(BaseModel):
    """Named link to another upstream resource (moves, forms)."""

    name: str
    url: str


class PokemonStat(BaseModel):
    name: str
    base_stat: int
    effort: int


class SpeciesInfo(BaseModel):
    name: str
    description: str = Field(
        default="",
        description="First English flavor text, form feeds replaced by spaces",
    )
    genera: str = Field(default="", description="First English genus")


class CatalogDetail(BaseModel):
    """Full record for one Pokemon."""

    id: int
    name: str
    height: int | None = None
    weight: int | None = None
    base_experience: int | None = None
    images: PokemonImages
    types: list[PokemonType] = Field(default_factory=list)
    abilities: list[PokemonAbility] = Field(default_factory=list)
    moves: list[ResourceRef] = Field(default_factory=list)
    forms: list[ResourceRef] = Field(default_factory=list)
    stats: list[PokemonStat] = Field(default_factory=list)
    species: SpeciesInfo
