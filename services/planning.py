"""
Plan Generation Service

Assigns recipes (or food component sets) to the slots of a weekly schedule.

Two strategies are available:

- AUTO: walks the schedule day by day. Novelties come first until the weekly
  novelty cap is reached, then favorites with probability favorite_ratio,
  otherwise "other" recipes. Consecutive slots avoid repeating a category
  when possible. A lunch covered by a school menu becomes a school meal.
- EXPRESS: every slot gets a favorite by round-robin, then a single random
  slot is replaced by a novelty.

All round-robin counters live in a SelectionState created for each run, so
concurrent generations for different families never share state. The
functions here are pure: persisting the result is the caller's job.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum

from constants import (
    DEFAULT_SCHEDULE, DAYS_OF_WEEK, MEAL_TYPES,
    SOURCE_FAVORITE, SOURCE_NOVELTY, SOURCE_OTHER, SOURCE_FALLBACK,
    SOURCE_COMPONENTS, SOURCE_SCHOOL,
)
from utils.errors import NoRecipesAvailableError, NoFavoritesError, ValidationError
from .dietary import filter_compliant_recipes, filter_compliant_components, partition_recipes

logger = logging.getLogger(__name__)

# Never more than this many novelties a week, whatever the profile says
NOVELTY_WEEKLY_CAP = 2

# Share of AUTO slots built from components when components are available
COMPONENT_MEAL_RATIO = 0.3

# How many recent proteins a component meal tries not to repeat
RECENT_PROTEIN_WINDOW = 2


class PlanMode(str, Enum):
    AUTO = 'AUTO'
    EXPRESS = 'EXPRESS'


def parse_mode(mode):
    if isinstance(mode, PlanMode):
        return mode
    try:
        return PlanMode(str(mode).upper())
    except ValueError:
        raise ValidationError(f'Invalid generation mode: {mode}')


@dataclass
class SelectionState:
    """Round-robin positions and counters for one generation run."""
    favorite_index: int = 0
    novelty_index: int = 0
    other_index: int = 0
    novelty_count: int = 0
    recent_proteins: list = field(default_factory=list)


@dataclass
class PlannedSlot:
    day_of_week: str
    meal_type: str
    recipe: object = None
    source: str = SOURCE_OTHER
    is_school_meal: bool = False
    components: list = field(default_factory=list)

    @property
    def recipe_id(self):
        return self.recipe.id if self.recipe is not None else None

    @property
    def category(self):
        return self.recipe.category if self.recipe is not None else None


@dataclass
class PlanResult:
    mode: PlanMode
    slots: list
    warnings: list = field(default_factory=list)

    @property
    def novelty_count(self):
        """Novelty recipes planned, whatever step picked them."""
        return sum(1 for slot in self.slots if is_novelty_recipe(slot.recipe))

    def as_tuples(self):
        """(day, meal type, recipe id) for every slot, in schedule order."""
        return [(slot.day_of_week, slot.meal_type, slot.recipe_id) for slot in self.slots]


def iter_schedule_slots(schedule=None):
    """
    Yield (day_of_week, meal_type) pairs in day-then-meal-type order.

    The schedule entries may come in any order; duplicates are dropped so a
    plan never gets two meals in the same slot.
    """
    schedule = schedule if schedule is not None else DEFAULT_SCHEDULE
    by_day = {}
    for entry in schedule:
        day = str(entry.get('day_of_week', '')).upper()
        if day not in DAYS_OF_WEEK:
            raise ValidationError(f'Invalid day in schedule: {day or "(empty)"}')
        meal_types = by_day.setdefault(day, set())
        for meal_type in entry.get('meal_types', []):
            meal_type = str(meal_type).upper()
            if meal_type not in MEAL_TYPES:
                raise ValidationError(f'Invalid meal type in schedule: {meal_type}')
            meal_types.add(meal_type)

    for day in DAYS_OF_WEEK:
        for meal_type in MEAL_TYPES:
            if meal_type in by_day.get(day, ()):
                yield day, meal_type


def is_novelty_recipe(recipe):
    """A novelty that is not also a favorite (favorites win when partitioning)."""
    return recipe is not None and bool(recipe.is_novelty) and not recipe.is_favorite


def pick_round_robin(pool, index):
    """Recipe at position index, wrapping around the pool."""
    return pool[index % len(pool)]


def _same_category(a, b):
    if not a or not b:
        return False
    return a.strip().casefold() == b.strip().casefold()


def _eligible(pool, avoid_category):
    if not avoid_category:
        return list(pool)
    return [r for r in pool if not _same_category(r.category, avoid_category)]


# (pool, round-robin index) tried in order once category avoidance finds nothing
FALLBACK_ORDER = (
    ('favorites', 'favorite_index'),
    ('others', 'other_index'),
    ('novelties', 'novelty_index'),
)


def select_recipe(pools, state, avoid_category=None, max_novelties=0, favorite_ratio=0.0, rng=None):
    """
    Pick the recipe for one AUTO slot and advance state.

    Returns (recipe, source). Raises NoRecipesAvailableError when the three
    pools are all empty.
    """
    rng = rng or random.Random()

    novelties = _eligible(pools.novelties, avoid_category)
    if state.novelty_count < max_novelties and novelties:
        recipe = pick_round_robin(novelties, state.novelty_index)
        state.novelty_index += 1
        state.novelty_count += 1
        return recipe, SOURCE_NOVELTY

    favorites = _eligible(pools.favorites, avoid_category)
    if favorites and rng.random() < favorite_ratio:
        recipe = pick_round_robin(favorites, state.favorite_index)
        state.favorite_index += 1
        return recipe, SOURCE_FAVORITE

    others = _eligible(pools.others, avoid_category)
    if others:
        recipe = pick_round_robin(others, state.other_index)
        state.other_index += 1
        return recipe, SOURCE_OTHER

    # favorite_ratio is a target: with no "other" recipe left, favorites fill in
    if favorites:
        recipe = pick_round_robin(favorites, state.favorite_index)
        state.favorite_index += 1
        return recipe, SOURCE_FAVORITE

    # Nothing fits the category rule or the novelty cap; novelties come last
    for pool_name, index_name in FALLBACK_ORDER:
        pool = getattr(pools, pool_name)
        if pool:
            index = getattr(state, index_name)
            recipe = pick_round_robin(pool, index)
            setattr(state, index_name, index + 1)
            if is_novelty_recipe(recipe):
                state.novelty_count += 1
            return recipe, SOURCE_FALLBACK

    raise NoRecipesAvailableError()


def select_meal_components(proteins, vegetables, carbs, recent_proteins=None, rng=None):
    """
    Pick 1 protein, 1-2 vegetables and 1 carb for a component-based meal.

    Proteins used recently are avoided when another one is available.
    """
    if not proteins or not vegetables or not carbs:
        raise ValidationError('Insufficient components available')
    rng = rng or random.Random()
    recent = set(recent_proteins or [])

    fresh_proteins = [p for p in proteins if p.id not in recent]
    protein = rng.choice(fresh_proteins or proteins)

    vegetable_count = 2 if rng.random() < 0.6 else 1
    picked_vegetables = rng.sample(list(vegetables), min(vegetable_count, len(vegetables)))

    carb = rng.choice(carbs)
    return [protein] + picked_vegetables + [carb]


def _fallback_warnings(day, meal_type, recipe, previous_category, state, max_novelties):
    warnings = []
    slot = {'day_of_week': day, 'meal_type': meal_type, 'recipe_id': recipe.id}
    if _same_category(recipe.category, previous_category):
        warnings.append({'code': 'category_avoidance_ignored', 'category': previous_category, **slot})
        logger.warning('No recipe outside category %r for %s %s, using %r anyway',
                       previous_category, day, meal_type, recipe.title)
    if is_novelty_recipe(recipe) and state.novelty_count > max_novelties:
        warnings.append({'code': 'novelty_cap_exceeded', 'max_novelties': max_novelties, **slot})
        logger.warning('Only novelties left for %s %s, using %r beyond the cap of %d',
                       day, meal_type, recipe.title, max_novelties)
    return warnings


def _generate_auto(pools, profile, slots, school_lunches, components, rng, novelty_cap, component_ratio):
    state = SelectionState()
    max_novelties = max(0, min(profile.max_novelties or 0, novelty_cap))
    favorite_ratio = profile.favorite_ratio if profile.favorite_ratio is not None else 0.0

    proteins = [c for c in components if c.category == 'PROTEIN']
    vegetables = [c for c in components if c.category == 'VEGETABLE']
    carbs = [c for c in components if c.category == 'CARB']
    components_usable = bool(proteins and vegetables and carbs)

    planned = []
    warnings = []
    previous_category = None

    for day, meal_type in slots:
        if meal_type == 'LUNCH' and day in school_lunches:
            planned.append(PlannedSlot(day, meal_type, source=SOURCE_SCHOOL, is_school_meal=True))
            previous_category = school_lunches[day]
            continue

        if components_usable and rng.random() < component_ratio:
            picked = select_meal_components(proteins, vegetables, carbs, state.recent_proteins, rng)
            state.recent_proteins.append(picked[0].id)
            del state.recent_proteins[:-RECENT_PROTEIN_WINDOW]
            planned.append(PlannedSlot(day, meal_type, source=SOURCE_COMPONENTS, components=picked))
            previous_category = None
            continue

        recipe, source = select_recipe(
            pools, state,
            avoid_category=previous_category,
            max_novelties=max_novelties,
            favorite_ratio=favorite_ratio,
            rng=rng,
        )
        if source == SOURCE_FALLBACK:
            warnings.extend(_fallback_warnings(day, meal_type, recipe, previous_category, state, max_novelties))
        planned.append(PlannedSlot(day, meal_type, recipe=recipe, source=source))
        previous_category = recipe.category

    return planned, warnings


def _generate_express(pools, profile, slots, school_lunches, components, rng, novelty_cap, component_ratio):
    if not pools.favorites:
        raise NoFavoritesError()

    planned = [
        PlannedSlot(day, meal_type, recipe=pick_round_robin(pools.favorites, index), source=SOURCE_FAVORITE)
        for index, (day, meal_type) in enumerate(slots)
    ]

    if pools.novelties and planned:
        target = planned[rng.randrange(len(planned))]
        target.recipe = pools.novelties[0]
        target.source = SOURCE_NOVELTY

    return planned, []


STRATEGIES = {
    PlanMode.AUTO: _generate_auto,
    PlanMode.EXPRESS: _generate_express,
}


def generate_plan(profile, recipes, mode=PlanMode.AUTO, schedule=None, components=None,
                  school_lunches=None, rng=None, novelty_cap=NOVELTY_WEEKLY_CAP,
                  component_ratio=COMPONENT_MEAL_RATIO):
    """
    Generate slot assignments for one week.

    Args:
        profile: DietProfile (or any object with the same attributes)
        recipes: candidate recipes; non-compliant ones are dropped first
        mode: PlanMode.AUTO or PlanMode.EXPRESS
        schedule: template schedule, defaults to lunch and dinner every day
        components: candidate FoodComponents for component-based meals (AUTO only)
        school_lunches: {day_of_week: category or None} for days covered by a school menu
        rng: random.Random used for every random decision
        novelty_cap: hard weekly cap applied on top of profile.max_novelties
        component_ratio: probability that an AUTO slot is component-based

    Returns:
        PlanResult with one PlannedSlot per schedule slot
    """
    started = time.perf_counter()
    mode = parse_mode(mode)
    rng = rng or random.Random()

    pools = partition_recipes(filter_compliant_recipes(recipes, profile))
    usable_components = filter_compliant_components(components or [], profile)
    slots = list(iter_schedule_slots(schedule))

    planned, warnings = STRATEGIES[mode](
        pools, profile, slots, school_lunches or {}, usable_components, rng, novelty_cap, component_ratio
    )
    result = PlanResult(mode=mode, slots=planned, warnings=warnings)

    logger.info(
        'Generated %s plan: %d slots (%d favorites, %d novelties, %d others available), '
        '%d novelties used, %d warnings in %.1f ms',
        mode.value, len(planned), len(pools.favorites), len(pools.novelties), len(pools.others),
        result.novelty_count, len(warnings), (time.perf_counter() - started) * 1000,
    )
    return result
