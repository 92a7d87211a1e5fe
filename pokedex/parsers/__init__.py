from pokedex.parsers.pokeapi import (
    PayloadError,
    entry_from_pokemon,
    english_flavor_text,
    english_genus,
    extract_image,
    parse_count,
    parse_detail,
    parse_entry,
    parse_index,
    species_url,
)

__all__ = [
    "PayloadError",
    "entry_from_pokemon",
    "english_flavor_text",
    "english_genus",
    "extract_image",
    "parse_count",
    "parse_detail",
    "parse_entry",
    "parse_index",
    "species_url",
]
