"""
PokeAPI payload parsers.

Pure functions that turn upstream JSON into catalog models. No I/O here;
the catalog service does the fetching.
"""

from typing import Any

from pokedex.models.catalog import (
    CatalogDetail,
    CatalogEntry,
    IndexEntry,
    PokemonAbility,
    PokemonImages,
    PokemonStat,
    PokemonType,
    ResourceRef,
    SpeciesInfo,
)

ENGLISH = "en"


class PayloadError(ValueError):
    """Raised when an upstream document is missing required fields."""


def parse_index(body: dict[str, Any]) -> list[IndexEntry]:
    """
    Parse the ``results`` of a listing page into index rows.

    Upstream order (ascending id) is preserved.
    """
    try:
        return [IndexEntry(name=row["name"], url=row["url"]) for row in body["results"]]
    except (KeyError, TypeError) as e:
        raise PayloadError(f"Malformed listing payload: {e!r}") from e


def parse_count(body: dict[str, Any], default: int) -> int:
    """Upstream ``count`` of a listing page, ``default`` when absent."""
    try:
        return int(body.get("count", default))
    except (TypeError, ValueError) as e:
        raise PayloadError(f"Malformed listing count: {body.get('count')!r}") from e


def extract_image(pokemon: dict[str, Any]) -> str | None:
    """Official artwork if present, otherwise the default front sprite."""
    sprites = pokemon.get("sprites") or {}
    artwork = ((sprites.get("other") or {}).get("official-artwork") or {}).get("front_default")
    return artwork or sprites.get("front_default")


def parse_entry(row: IndexEntry, pokemon: dict[str, Any]) -> CatalogEntry:
    """
    Merge a listing row with its detail document.

    Name and URL come from the listing, id and image from the detail.
    """
    try:
        pokemon_id = int(pokemon["id"])
    except (KeyError, TypeError, ValueError) as e:
        raise PayloadError(f"Detail for {row.name!r} has no usable id") from e

    return CatalogEntry(
        id=pokemon_id,
        name=row.name,
        url=row.url,
        image=extract_image(pokemon),
    )


def entry_from_pokemon(pokemon: dict[str, Any], base_url: str) -> CatalogEntry:
    """Build an entry from a direct detail lookup, with no listing row."""
    try:
        pokemon_id = int(pokemon["id"])
        name = str(pokemon["name"])
    except (KeyError, TypeError, ValueError) as e:
        raise PayloadError(f"Malformed pokemon payload: {e!r}") from e

    return CatalogEntry(
        id=pokemon_id,
        name=name,
        url=f"{base_url.rstrip('/')}/pokemon/{pokemon_id}/",
        image=extract_image(pokemon),
    )


def species_url(pokemon: dict[str, Any]) -> str:
    try:
        return str(pokemon["species"]["url"])
    except (KeyError, TypeError) as e:
        raise PayloadError("Pokemon payload has no species link") from e


def _first_english(entries: list[dict[str, Any]] | None, key: str) -> str:
    for entry in entries or []:
        if (entry.get("language") or {}).get("name") == ENGLISH:
            return str(entry.get(key) or "")
    return ""


def english_flavor_text(species: dict[str, Any]) -> str:
    """First English flavor text with form feeds normalized to spaces."""
    return _first_english(species.get("flavor_text_entries"), "flavor_text").replace("\f", " ")


def english_genus(species: dict[str, Any]) -> str:
    return _first_english(species.get("genera"), "genus")


def parse_detail(pokemon: dict[str, Any], species: dict[str, Any]) -> CatalogDetail:
    """
    Assemble the full detail record from the pokemon and species documents.

    Raises:
        PayloadError: If a required field is missing
    """
    try:
        sprites = pokemon.get("sprites") or {}
        artwork = (sprites.get("other") or {}).get("official-artwork") or {}

        return CatalogDetail(
            id=pokemon["id"],
            name=pokemon["name"],
            height=pokemon.get("height"),
            weight=pokemon.get("weight"),
            base_experience=pokemon.get("base_experience"),
            images=PokemonImages(
                front_default=sprites.get("front_default"),
                front_shiny=sprites.get("front_shiny"),
                official_artwork=artwork.get("front_default"),
            ),
            types=[
                PokemonType(slot=t["slot"], name=t["type"]["name"])
                for t in pokemon.get("types", [])
            ],
            abilities=[
                PokemonAbility(
                    name=a["ability"]["name"],
                    is_hidden=a["is_hidden"],
                    slot=a["slot"],
                )
                for a in pokemon.get("abilities", [])
            ],
            moves=[
                ResourceRef(name=m["move"]["name"], url=m["move"]["url"])
                for m in pokemon.get("moves", [])
            ],
            forms=[ResourceRef(name=f["name"], url=f["url"]) for f in pokemon.get("forms", [])],
            stats=[
                PokemonStat(
                    name=s["stat"]["name"],
                    base_stat=s["base_stat"],
                    effort=s["effort"],
                )
                for s in pokemon.get("stats", [])
            ],
            species=SpeciesInfo(
                name=species.get("name", ""),
                description=english_flavor_text(species),
                genera=english_genus(species),
            ),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise PayloadError(f"Malformed pokemon payload: {e!r}") from e
