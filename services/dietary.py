"""
Dietary Compliance Service

Hard dietary filtering of recipes and food components against a family's
diet profile, and the favorite / novelty / other split used by planning.
"""

from collections import namedtuple

from constants import DIET_FLAGS

RecipePools = namedtuple('RecipePools', ['favorites', 'novelties', 'others'])


def _required_flags(profile):
    return [flag for flag in DIET_FLAGS if getattr(profile, flag, False)]


def _allergy_set(profile):
    return {a.strip().lower() for a in (getattr(profile, 'allergies', None) or []) if a and a.strip()}


def _has_allergen(allergens, allergies):
    return any((a or '').strip().lower() in allergies for a in (allergens or []))


def is_recipe_compliant(recipe, profile):
    """True when the recipe carries every flag the profile requires and no
    ingredient contains one of the family's allergens."""
    for flag in _required_flags(profile):
        if not getattr(recipe, flag, False):
            return False

    allergies = _allergy_set(profile)
    if allergies:
        for ingredient in recipe.ingredients:
            if _has_allergen(ingredient.allergens, allergies):
                return False
    return True


def filter_compliant_recipes(recipes, profile):
    """Drop every recipe the family cannot eat, keeping order."""
    return [r for r in recipes if is_recipe_compliant(r, profile)]


def is_component_compliant(component, profile):
    for flag in _required_flags(profile):
        if not getattr(component, flag, False):
            return False
    return not _has_allergen(component.allergens, _allergy_set(profile))


def filter_compliant_components(components, profile):
    return [c for c in components if is_component_compliant(c, profile)]


def partition_recipes(recipes):
    """
    Split recipes into favorites, novelties and others.

    A recipe flagged both favorite and novelty counts as a favorite.
    """
    favorites, novelties, others = [], [], []
    for recipe in recipes:
        if recipe.is_favorite:
            favorites.append(recipe)
        elif recipe.is_novelty:
            novelties.append(recipe)
        else:
            others.append(recipe)
    return RecipePools(favorites, novelties, others)
