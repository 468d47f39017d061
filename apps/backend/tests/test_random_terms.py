import random
from datetime import date
from unittest.mock import MagicMock

import pytest

from aggregation.random_terms import (
    CATEGORIES,
    COMPOUND_OBJECTS,
    COMPOUND_THEMES,
    FUNCTIONAL_MODIFIERS,
    SEASONAL_TERMS,
    STYLE_MODIFIERS,
    WEIGHTED_POOL,
    RandomTermGenerator,
    get_random_term,
)

ALL_BASE_TERMS = {term for _name, _weight, terms in CATEGORIES for term in terms}


def _fixed_roll(roll: float, today: date = date(2024, 10, 15)) -> RandomTermGenerator:
    rng = random.Random(7)
    generator = RandomTermGenerator(rng=rng, today=today)
    generator.rng = MagicMock(wraps=rng)
    generator.rng.random.side_effect = [roll, 0.2]
    return generator


def test_seasonal_roll_uses_current_month():
    term = _fixed_roll(0.05, today=date(2024, 10, 15)).next_term()
    assert term in SEASONAL_TERMS[10]


def test_seasonal_december():
    term = _fixed_roll(0.05, today=date(2024, 12, 1)).next_term()
    assert term in SEASONAL_TERMS[12]


def test_compound_roll():
    term = _fixed_roll(0.2).next_term()
    theme, _, obj = term.partition(" ")
    assert theme in COMPOUND_THEMES
    assert obj in COMPOUND_OBJECTS


def test_modified_roll():
    term = _fixed_roll(0.5).next_term()
    # Second roll (0.2) picks the style modifiers
    assert any(term.startswith(f"{modifier} ") for modifier in STYLE_MODIFIERS)
    assert any(term.endswith(f" {base}") for base in ALL_BASE_TERMS)


def test_plain_roll():
    term = _fixed_roll(0.9).next_term()
    assert term in ALL_BASE_TERMS


def test_every_month_has_seasonal_terms():
    assert sorted(SEASONAL_TERMS) == list(range(1, 13))


def test_weighted_pool_reflects_category_weights():
    assert WEIGHTED_POOL.count("phone stand") == 30
    assert WEIGHTED_POOL.count("benchy") == 5


def test_modifier_lists_are_nonempty():
    assert STYLE_MODIFIERS and FUNCTIONAL_MODIFIERS


def test_seeded_generator_is_repeatable():
    first = RandomTermGenerator(rng=random.Random(42), today=date(2024, 3, 1))
    second = RandomTermGenerator(rng=random.Random(42), today=date(2024, 3, 1))
    assert [first.next_term() for _ in range(20)] == [second.next_term() for _ in range(20)]


@pytest.mark.parametrize("_", range(5))
def test_get_random_term_returns_text(_):
    term = get_random_term()
    assert isinstance(term, str)
    assert term.strip() == term
    assert term
