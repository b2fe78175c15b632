import pytest

from memory_match.catalog import InMemoryCatalog, PlayableItem, select_round_items
from memory_match.difficulty import DifficultyCurve
from memory_match.errors import InsufficientContentError
from memory_match.rng import RandomSource

curve = DifficultyCurve()


def items(category, count, start=0, age_band=None):
    return [
        PlayableItem(id=f"{category}-{i}", content_ref=f"{category}/{i}.png", category=category, age_band=age_band)
        for i in range(start, start + count)
    ]


def test_high_similarity_prefers_one_category():
    pool = items("shoes", 10) + items("bags", 25)
    selected = select_round_items(pool, curve.config_for(4), category="bags")
    assert len(selected) == 20
    assert {i.category for i in selected} == {"bags"}


def test_low_similarity_ignores_category():
    pool = items("shoes", 10) + items("bags", 25)
    selected = select_round_items(pool, curve.config_for(3), category="bags")
    assert len(selected) == 16
    assert selected[0].category == "shoes"


def test_thin_category_falls_back_to_whole_pool():
    pool = items("shoes", 18) + items("bags", 5)
    selected = select_round_items(pool, curve.config_for(4), category="bags")
    assert len(selected) == 20


def test_not_enough_items():
    with pytest.raises(InsufficientContentError):
        select_round_items(items("shoes", 7), curve.config_for(1))


def test_seeded_selection_is_reproducible():
    pool = InMemoryCatalog.generated(30).items()
    a = select_round_items(pool, curve.config_for(1), rng=RandomSource(5))
    b = select_round_items(pool, curve.config_for(1), rng=RandomSource(5))
    assert [i.id for i in a] == [i.id for i in b]
    assert len({i.id for i in a}) == 8


def test_catalog_filters_by_age_band():
    catalog = InMemoryCatalog(items("toys", 3, age_band="child") + items("bags", 2, age_band="adult") + items("misc", 1))
    assert {i.category for i in catalog.items(age_band="child")} == {"toys", "misc"}
    assert len(catalog.items()) == 6


def test_generated_catalog_cycles_categories():
    catalog = InMemoryCatalog.generated(6, categories=("a", "b"))
    assert [i.category for i in catalog.items()] == ["a", "b", "a", "b", "a", "b"]
    assert catalog.items()[0].id == "item-0"


def test_in_memory_catalog_leaves_category_and_level_to_selection():
    catalog = InMemoryCatalog(items("shoes", 2) + items("bags", 2))
    assert len(catalog.items(category="bags", level=5)) == 4
