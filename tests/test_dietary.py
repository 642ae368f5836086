"""
Tests for dietary filtering and recipe partitioning.
"""

from types import SimpleNamespace

from services.dietary import (
    is_recipe_compliant, filter_compliant_recipes, is_component_compliant, partition_recipes,
)


def profile(**kwargs):
    kwargs.setdefault('allergies', [])
    return SimpleNamespace(**kwargs)


def recipe(title='r', ingredients=None, **kwargs):
    kwargs.setdefault('is_favorite', False)
    kwargs.setdefault('is_novelty', False)
    return SimpleNamespace(title=title, ingredients=ingredients or [], **kwargs)


def ingredient(name, allergens=None):
    return SimpleNamespace(name=name, allergens=allergens or [])


def test_no_constraints_accepts_everything():
    assert is_recipe_compliant(recipe(), profile())


def test_required_flag_must_be_present():
    assert not is_recipe_compliant(recipe(), profile(vegetarian=True))
    assert is_recipe_compliant(recipe(vegetarian=True), profile(vegetarian=True))


def test_every_required_flag_is_checked():
    p = profile(gluten_free=True, lactose_free=True)
    assert not is_recipe_compliant(recipe(gluten_free=True), p)
    assert is_recipe_compliant(recipe(gluten_free=True, lactose_free=True), p)


def test_allergen_in_any_ingredient_excludes_recipe():
    r = recipe(ingredients=[ingredient('Rice'), ingredient('Satay sauce', ['Peanuts'])])
    assert not is_recipe_compliant(r, profile(allergies=['peanuts']))
    assert is_recipe_compliant(r, profile(allergies=['shellfish']))


def test_filter_keeps_order():
    a, b, c = recipe('a', vegan=True), recipe('b'), recipe('c', vegan=True)
    assert filter_compliant_recipes([a, b, c], profile(vegan=True)) == [a, c]


def test_component_compliance():
    tofu = SimpleNamespace(vegan=True, allergens=['soy'])
    assert is_component_compliant(tofu, profile(vegan=True))
    assert not is_component_compliant(tofu, profile(allergies=['Soy']))


def test_partition_favorite_wins_over_novelty():
    both = recipe('both', is_favorite=True, is_novelty=True)
    new = recipe('new', is_novelty=True)
    plain = recipe('plain')
    pools = partition_recipes([plain, new, both])
    assert pools.favorites == [both]
    assert pools.novelties == [new]
    assert pools.others == [plain]
