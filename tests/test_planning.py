"""
Tests for the plan generator (pure functions, no database).
"""

import random
from types import SimpleNamespace

import pytest

from constants import DAYS_OF_WEEK
from services.dietary import partition_recipes
from services.planning import (
    PlanMode, SelectionState, generate_plan, iter_schedule_slots, pick_round_robin, select_recipe,
    select_meal_components,
)
from utils.errors import NoRecipesAvailableError, NoFavoritesError, ValidationError


def make_profile(**kwargs):
    defaults = dict(max_novelties=2, favorite_ratio=1.0, allergies=[])
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


_ids = iter(range(1, 10000))


def make_recipe(title, category=None, favorite=False, novelty=False, **flags):
    return SimpleNamespace(
        id=next(_ids), title=title, category=category,
        is_favorite=favorite, is_novelty=novelty, ingredients=[], **flags
    )


def make_component(name, category):
    return SimpleNamespace(id=next(_ids), name=name, category=category, allergens=[])


class TestAutoGeneration:

    def test_two_novelties_then_favorites_cycle(self):
        f1, f2 = make_recipe('f1', favorite=True), make_recipe('f2', favorite=True)
        n1, n2 = make_recipe('n1', novelty=True), make_recipe('n2', novelty=True)

        result = generate_plan(make_profile(), [f1, f2, n1, n2], rng=random.Random(7))

        assert len(result.slots) == 14
        assert result.novelty_count == 2
        titles = [slot.recipe.title for slot in result.slots]
        assert titles == ['n1', 'n2'] + ['f1', 'f2'] * 6
        assert result.warnings == []

    def test_slots_follow_day_then_meal_order(self):
        recipes = [make_recipe('f', favorite=True)]
        result = generate_plan(make_profile(), recipes, rng=random.Random(1))
        assert [(s.day_of_week, s.meal_type) for s in result.slots] == [
            (day, meal_type) for day in DAYS_OF_WEEK for meal_type in ('LUNCH', 'DINNER')
        ]
        assert result.as_tuples()[0] == ('MONDAY', 'LUNCH', recipes[0].id)

    @pytest.mark.parametrize('max_novelties', [0, 1, 2, 5])
    def test_novelty_count_never_exceeds_cap(self, max_novelties):
        recipes = [make_recipe(f'n{i}', novelty=True) for i in range(6)]
        recipes += [make_recipe('f', favorite=True), make_recipe('o')]
        result = generate_plan(make_profile(max_novelties=max_novelties, favorite_ratio=0.5), recipes,
                               rng=random.Random(3))
        assert result.novelty_count <= min(max_novelties, 2)

    def test_weekly_cap_can_be_configured(self):
        recipes = [make_recipe(f'n{i}', novelty=True) for i in range(6)] + [make_recipe('f', favorite=True)]
        result = generate_plan(make_profile(max_novelties=5), recipes, rng=random.Random(3), novelty_cap=4)
        assert result.novelty_count == 4

    def test_only_compliant_recipes_are_planned(self):
        veggie = make_recipe('veggie', favorite=True, vegetarian=True)
        steak = make_recipe('steak', favorite=True)
        result = generate_plan(make_profile(vegetarian=True), [veggie, steak], rng=random.Random(0))
        assert {slot.recipe.title for slot in result.slots} == {'veggie'}

    def test_ratio_zero_uses_other_recipes(self):
        fav = make_recipe('fav', favorite=True)
        other = make_recipe('other')
        result = generate_plan(make_profile(favorite_ratio=0.0, max_novelties=0), [fav, other],
                               rng=random.Random(0))
        assert {slot.recipe.title for slot in result.slots} == {'other'}

    def test_favorites_fill_in_when_no_other_recipe_exists(self):
        fav = make_recipe('fav', favorite=True)
        result = generate_plan(make_profile(favorite_ratio=0.0), [fav], rng=random.Random(0))
        assert all(slot.source == 'favorite' for slot in result.slots)
        assert result.warnings == []

    def test_consecutive_slots_avoid_same_category(self):
        pasta = make_recipe('pasta', category='pasta', favorite=True)
        fish = make_recipe('fish', category='fish', favorite=True)
        result = generate_plan(make_profile(max_novelties=0), [pasta, fish], rng=random.Random(0))
        categories = [slot.category for slot in result.slots]
        assert all(a != b for a, b in zip(categories, categories[1:]))

    def test_category_match_ignores_case(self):
        a = make_recipe('a', category='Pasta', favorite=True)
        b = make_recipe('b', category='pasta ', favorite=True)
        c = make_recipe('c', category='soup', favorite=True)
        result = generate_plan(make_profile(max_novelties=0), [a, b, c], rng=random.Random(0))
        titles = [slot.recipe.title for slot in result.slots]
        for first, second in zip(titles, titles[1:]):
            assert {first, second} != {'a', 'b'}

    def test_uncategorized_recipes_never_conflict(self):
        plain = make_recipe('plain', favorite=True)
        result = generate_plan(make_profile(max_novelties=0), [plain], rng=random.Random(0))
        assert result.warnings == []
        assert all(slot.source == 'favorite' for slot in result.slots)

    def test_falls_back_with_warning_when_only_same_category_left(self):
        pasta = make_recipe('pasta', category='pasta', favorite=True)
        result = generate_plan(make_profile(max_novelties=0), [pasta], rng=random.Random(0))

        assert [slot.recipe.title for slot in result.slots] == ['pasta'] * 14
        assert result.slots[0].source == 'favorite'
        assert all(slot.source == 'fallback' for slot in result.slots[1:])
        assert len(result.warnings) == 13
        assert result.warnings[0]['code'] == 'category_avoidance_ignored'
        assert result.warnings[0]['category'] == 'pasta'

    def test_only_novelties_left_past_the_cap(self):
        n1, n2 = make_recipe('n1', novelty=True), make_recipe('n2', novelty=True)
        result = generate_plan(make_profile(max_novelties=1), [n1, n2], rng=random.Random(0))

        assert [slot.recipe.title for slot in result.slots] == ['n1', 'n2'] * 7
        assert result.novelty_count == 14
        assert {w['code'] for w in result.warnings} == {'novelty_cap_exceeded'}
        assert len(result.warnings) == 13
        assert result.warnings[0]['max_novelties'] == 1

    def test_fallback_novelties_are_counted(self):
        n1 = make_recipe('n1', category='soup', novelty=True)
        n2 = make_recipe('n2', category='soup', novelty=True)
        result = generate_plan(make_profile(max_novelties=2), [n1, n2], rng=random.Random(0))

        assert result.novelty_count == 14
        by_slot = {}
        for warning in result.warnings:
            by_slot.setdefault((warning['day_of_week'], warning['meal_type']), []).append(warning['code'])
        assert by_slot[('MONDAY', 'DINNER')] == ['category_avoidance_ignored']
        assert by_slot[('TUESDAY', 'LUNCH')] == ['category_avoidance_ignored', 'novelty_cap_exceeded']

    def test_favorite_novelty_is_not_counted(self):
        both = make_recipe('both', favorite=True, novelty=True)
        result = generate_plan(make_profile(max_novelties=0), [both], rng=random.Random(0))
        assert result.novelty_count == 0
        assert result.warnings == []

    def test_fallback_is_logged(self, caplog):
        pasta = make_recipe('pasta', category='pasta', favorite=True)
        with caplog.at_level('WARNING', logger='services.planning'):
            generate_plan(make_profile(max_novelties=0), [pasta], schedule=[
                {'day_of_week': 'MONDAY', 'meal_types': ['LUNCH', 'DINNER']},
            ], rng=random.Random(0))
        assert 'pasta' in caplog.text

    def test_no_recipes_raises(self):
        with pytest.raises(NoRecipesAvailableError):
            generate_plan(make_profile(), [], rng=random.Random(0))

    def test_no_compliant_recipes_raises(self):
        with pytest.raises(NoRecipesAvailableError):
            generate_plan(make_profile(vegan=True), [make_recipe('steak', favorite=True)], rng=random.Random(0))

    def test_school_lunch_becomes_school_meal(self):
        pasta = make_recipe('pasta', category='pasta', favorite=True)
        fish = make_recipe('fish', category='fish', favorite=True)
        result = generate_plan(
            make_profile(max_novelties=0), [pasta, fish],
            school_lunches={'MONDAY': 'pasta'}, rng=random.Random(0),
        )
        monday_lunch, monday_dinner = result.slots[0], result.slots[1]
        assert monday_lunch.is_school_meal
        assert monday_lunch.recipe is None
        assert monday_lunch.source == 'school'
        assert monday_dinner.recipe.title == 'fish'

    def test_component_meals_when_components_available(self):
        components = [
            make_component('Chicken', 'PROTEIN'), make_component('Tofu', 'PROTEIN'),
            make_component('Carrot', 'VEGETABLE'), make_component('Leek', 'VEGETABLE'),
            make_component('Rice', 'CARB'),
        ]
        result = generate_plan(make_profile(), [make_recipe('f', favorite=True)], components=components,
                               component_ratio=1.0, rng=random.Random(5))
        for slot in result.slots:
            assert slot.source == 'components'
            categories = [c.category for c in slot.components]
            assert categories[0] == 'PROTEIN'
            assert categories[-1] == 'CARB'
            assert 1 <= categories.count('VEGETABLE') <= 2

    def test_components_ignored_when_a_category_is_missing(self):
        components = [make_component('Chicken', 'PROTEIN'), make_component('Rice', 'CARB')]
        result = generate_plan(make_profile(), [make_recipe('f', favorite=True)], components=components,
                               component_ratio=1.0, rng=random.Random(5))
        assert all(slot.source != 'components' for slot in result.slots)

    def test_same_seed_gives_same_plan(self):
        recipes = [make_recipe(f'r{i}', category=f'c{i % 3}', favorite=i % 2 == 0) for i in range(8)]
        profile = make_profile(favorite_ratio=0.5)
        first = generate_plan(profile, recipes, rng=random.Random(42)).as_tuples()
        second = generate_plan(profile, recipes, rng=random.Random(42)).as_tuples()
        assert first == second


class TestExpressGeneration:

    def test_one_novelty_rest_favorites(self):
        favorites = [make_recipe(f'f{i}', favorite=True) for i in range(3)]
        n1, n2 = make_recipe('n1', novelty=True), make_recipe('n2', novelty=True)
        result = generate_plan(make_profile(), favorites + [n1, n2], mode=PlanMode.EXPRESS,
                               rng=random.Random(11))

        novelty_slots = [s for s in result.slots if s.source == 'novelty']
        assert len(novelty_slots) == 1
        assert novelty_slots[0].recipe is n1
        assert all(s.recipe.is_favorite for s in result.slots if s.source != 'novelty')

    def test_favorites_round_robin_without_novelty(self):
        favorites = [make_recipe(f'f{i}', favorite=True) for i in range(3)]
        result = generate_plan(make_profile(), favorites, mode='express', rng=random.Random(11))
        assert result.novelty_count == 0
        assert [s.recipe for s in result.slots] == [favorites[i % 3] for i in range(14)]

    def test_without_favorites_raises(self):
        with pytest.raises(NoFavoritesError):
            generate_plan(make_profile(), [make_recipe('n', novelty=True)], mode=PlanMode.EXPRESS)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            generate_plan(make_profile(), [make_recipe('f', favorite=True)], mode='TURBO')


class TestSelection:

    def test_round_robin_wraps(self):
        pool = ['a', 'b', 'c']
        for n in range(6):
            for k in range(3):
                assert pick_round_robin(pool, n) == pick_round_robin(pool, n + k * len(pool))

    def test_select_recipe_advances_its_own_state(self):
        pools = partition_recipes([make_recipe('f1', favorite=True), make_recipe('f2', favorite=True)])
        state = SelectionState()
        rng = random.Random(0)
        picked = [select_recipe(pools, state, favorite_ratio=1.0, rng=rng)[0].title for _ in range(3)]
        assert picked == ['f1', 'f2', 'f1']
        assert state.favorite_index == 3

        fresh = SelectionState()
        assert select_recipe(pools, fresh, favorite_ratio=1.0, rng=rng)[0].title == 'f1'

    def test_novelties_first_until_cap(self):
        pools = partition_recipes([make_recipe('n', novelty=True), make_recipe('f', favorite=True)])
        state = SelectionState()
        sources = [select_recipe(pools, state, max_novelties=1, favorite_ratio=1.0, rng=random.Random(0))[1]
                   for _ in range(3)]
        assert sources == ['novelty', 'favorite', 'favorite']
        assert state.novelty_count == 1

    def test_meal_components_avoid_recent_protein(self):
        chicken, tofu = make_component('Chicken', 'PROTEIN'), make_component('Tofu', 'PROTEIN')
        carrot, rice = make_component('Carrot', 'VEGETABLE'), make_component('Rice', 'CARB')
        for seed in range(10):
            picked = select_meal_components([chicken, tofu], [carrot], [rice], [chicken.id], random.Random(seed))
            assert picked[0] is tofu

    def test_meal_components_need_every_category(self):
        with pytest.raises(ValidationError):
            select_meal_components([], [make_component('Carrot', 'VEGETABLE')], [make_component('Rice', 'CARB')])


class TestSchedule:

    def test_entries_are_ordered_and_deduplicated(self):
        schedule = [
            {'day_of_week': 'sunday', 'meal_types': ['dinner']},
            {'day_of_week': 'MONDAY', 'meal_types': ['DINNER', 'LUNCH', 'LUNCH']},
        ]
        assert list(iter_schedule_slots(schedule)) == [
            ('MONDAY', 'LUNCH'), ('MONDAY', 'DINNER'), ('SUNDAY', 'DINNER'),
        ]

    def test_invalid_day_rejected(self):
        with pytest.raises(ValidationError):
            list(iter_schedule_slots([{'day_of_week': 'FUNDAY', 'meal_types': ['LUNCH']}]))

    def test_invalid_meal_type_rejected(self):
        with pytest.raises(ValidationError):
            list(iter_schedule_slots([{'day_of_week': 'MONDAY', 'meal_types': ['BRUNCH']}]))
