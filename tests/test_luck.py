"""Tests for the deterministic generator and the spawn helpers built on it."""

from geocoin.world import GridCoordinate, initial_coin_count, luck, spawns
from geocoin.world.luck import coin_count_key, cyrb128, mulberry32, spawn_key


def test_luck_is_pure_and_in_unit_interval():
    keys = [f"{i},{j}" for i in range(-20, 20) for j in range(-20, 20)]
    first = [luck(key) for key in keys]
    second = [luck(key) for key in keys]

    assert first == second
    assert all(0.0 <= value < 1.0 for value in first)
    # Neighbouring keys must not collapse onto the same value
    assert len(set(first)) > len(first) * 0.99


def test_luck_is_roughly_uniform_over_grid_keys():
    values = [luck(f"{i},{j}") for i in range(-25, 25) for j in range(-25, 25)]
    mean = sum(values) / len(values)

    assert 0.45 < mean < 0.55
    below = sum(1 for value in values if value < 0.1)
    # 2500 draws at p=0.1 -> about 250 caches
    assert 180 < below < 320


def test_hash_words_are_unsigned_32_bit():
    for key in ["", "0,0", "-12,99,coins", "ünïcødé ✓"]:
        words = cyrb128(key)
        assert len(words) == 4
        assert all(0 <= word < 2**32 for word in words)
        assert 0.0 <= mulberry32(words[0]) < 1.0


def test_keys_follow_cell_convention():
    coord = GridCoordinate(-4, 11)

    assert spawn_key(coord) == "-4,11"
    assert coin_count_key(coord) == "-4,11,coins"


def test_spawn_and_coin_count_use_injected_generator():
    coord = GridCoordinate(0, 0)

    assert spawns(coord, 0.1, lambda key: 0.05) is True
    assert spawns(coord, 0.1, lambda key: 0.1) is False
    assert initial_coin_count(coord, 10, lambda key: 0.0) == 1
    assert initial_coin_count(coord, 10, lambda key: 0.999999) == 10
    assert initial_coin_count(coord, 10, lambda key: 0.35) == 4


def test_default_generator_matches_formula():
    coord = GridCoordinate(0, 0)

    assert spawns(coord, 0.1) == (luck("0,0") < 0.1)
    assert 1 <= initial_coin_count(coord, 10) <= 10


def test_luck_matches_reference_values():
    # Untouched cells are re-derived on every visit, so these must never drift
    assert luck("0,0") == 0.6089869432616979
    assert luck("0,0,coins") == 0.5677972368430346
    assert luck("-3,7") == 0.7130255538504571
    assert luck("12,-8,coins") == 0.8999844591598958
    # Non-ASCII keys hash by UTF-16 code unit, including surrogate pairs
    assert luck("é€😀") == 0.44470980227924883
