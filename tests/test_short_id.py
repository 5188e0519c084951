"""
tests/test_short_id.py — Unit tests for public recipe IDs
"""
from __future__ import annotations

from collections import Counter

from app.utils.short_id import ALPHABET, generate_short_id
from app.utils.validators import validate_recipe_id


def test_default_length_is_12():
    assert len(generate_short_id()) == 12


def test_only_base62_characters():
    for _ in range(200):
        assert set(generate_short_id()) <= set(ALPHABET)
    assert len(ALPHABET) == 62


def test_ids_are_unique():
    ids = {generate_short_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_character_distribution_roughly_uniform():
    counts = Counter("".join(generate_short_id() for _ in range(10_000)))
    expected = 10_000 * 12 / 62
    assert set(counts) == set(ALPHABET)
    for char in ALPHABET:
        assert expected * 0.5 < counts[char] < expected * 1.5


def test_generated_ids_pass_recipe_id_validation():
    assert validate_recipe_id(generate_short_id()).ok
