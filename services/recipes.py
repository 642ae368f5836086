"""
Recipe Service

Recipe catalog and food components. A recipe or component with no family is
global and visible to every family.
"""

import logging

from constants import DIET_FLAGS, MAX_LENGTHS, COMPONENT_CATEGORIES, SHOPPING_CATEGORY_LABELS
from models import db, Recipe, Ingredient, FoodComponent
from utils.errors import ValidationError, NotFoundError
from utils.sanitizer import sanitize_name

logger = logging.getLogger(__name__)


def _clean_list(values, field):
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f'{field} must be a list')
    return [sanitize_name(v, MAX_LENGTHS['ingredient_name']) for v in values if isinstance(v, str) and v.strip()]


def _build_ingredient(data, position):
    name = sanitize_name(data.get('name'), MAX_LENGTHS['ingredient_name'])
    if not name:
        raise ValidationError('Ingredient name is required')
    try:
        quantity = float(data.get('quantity', 0))
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid quantity for {name}')
    if quantity < 0:
        raise ValidationError(f'Quantity for {name} must be zero or more')
    unit = (data.get('unit') or '').strip()
    if not unit:
        raise ValidationError(f'Unit is required for {name}')

    category = (data.get('category') or 'other').strip().lower()
    if category not in SHOPPING_CATEGORY_LABELS:
        category = 'other'

    return Ingredient(
        name=name,
        quantity=quantity,
        unit=unit[:20],
        category=category,
        contains_gluten=bool(data.get('contains_gluten', False)),
        contains_lactose=bool(data.get('contains_lactose', False)),
        allergens=_clean_list(data.get('allergens'), 'allergens'),
        alternatives=_clean_list(data.get('alternatives'), 'alternatives'),
        position=position,
    )


def create_recipe(title, category=None, servings=4, ingredients=None, flags=None, family=None,
                  is_favorite=False, is_novelty=False, is_component_based=False):
    """
    Create a recipe with its ingredients.

    Args:
        title: recipe title
        category: free-form category used for variety ('pasta', 'fish'...)
        servings: number of people the ingredient quantities are written for
        ingredients: list of dicts (name, quantity, unit, category, contains_gluten,
            contains_lactose, allergens, alternatives)
        flags: dict of dietary flags (vegetarian, vegan, gluten_free, ...)
        family: owning Family, or None for a global recipe
    """
    title = sanitize_name(title, MAX_LENGTHS['recipe_title'])
    if not title:
        raise ValidationError('Recipe title is required')
    try:
        servings = int(servings) if servings is not None else 4
    except (TypeError, ValueError):
        raise ValidationError('Servings must be a number')
    if servings < 1:
        raise ValidationError('Servings must be at least 1')

    flags = flags or {}
    unknown = set(flags) - set(DIET_FLAGS)
    if unknown:
        raise ValidationError(f'Unknown dietary flag(s): {", ".join(sorted(unknown))}')

    recipe = Recipe(
        family_id=family.id if family is not None else None,
        title=title,
        category=sanitize_name(category, MAX_LENGTHS['category'], default=None),
        servings=servings,
        is_favorite=bool(is_favorite),
        is_novelty=bool(is_novelty),
        is_component_based=bool(is_component_based),
        **{flag: bool(flags.get(flag, False)) for flag in DIET_FLAGS},
    )
    for position, data in enumerate(ingredients or []):
        recipe.ingredients.append(_build_ingredient(data, position))

    db.session.add(recipe)
    db.session.commit()
    logger.info('Created recipe %s (%r) with %d ingredients', recipe.id, recipe.title, len(recipe.ingredients))
    return recipe


def get_recipe(recipe_id):
    recipe = db.session.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFoundError('Recipe not found')
    return recipe


def get_recipes_for_family(family):
    """The family's own recipes plus global ones, ordered by title."""
    return (Recipe.query
            .filter(db.or_(Recipe.family_id == family.id, Recipe.family_id.is_(None)))
            .order_by(Recipe.title, Recipe.id)
            .all())


def check_recipe_visible(recipe, family):
    if recipe.family_id is not None and recipe.family_id != family.id:
        raise NotFoundError('Recipe not found')


def set_recipe_flags(recipe, is_favorite=None, is_novelty=None):
    if is_favorite is not None:
        recipe.is_favorite = bool(is_favorite)
    if is_novelty is not None:
        recipe.is_novelty = bool(is_novelty)
    db.session.commit()
    return recipe


def create_food_component(name, category, unit, default_quantity=1.0, shopping_category='produce',
                          flags=None, allergens=None, family=None):
    name = sanitize_name(name, MAX_LENGTHS['ingredient_name'])
    if not name:
        raise ValidationError('Component name is required')
    category = (category or 'OTHER').upper()
    if category not in COMPONENT_CATEGORIES:
        raise ValidationError(f'Invalid component category: {category}')
    if not unit:
        raise ValidationError('Unit is required')

    component = FoodComponent(
        family_id=family.id if family is not None else None,
        name=name,
        category=category,
        unit=unit,
        default_quantity=float(default_quantity),
        shopping_category=shopping_category or 'other',
        allergens=_clean_list(allergens, 'allergens'),
    )
    for flag, value in (flags or {}).items():
        if flag not in DIET_FLAGS:
            raise ValidationError(f'Unknown dietary flag: {flag}')
        setattr(component, flag, bool(value))

    db.session.add(component)
    db.session.commit()
    return component


def get_food_component(component_id):
    component = db.session.get(FoodComponent, component_id)
    if component is None:
        raise NotFoundError('Food component not found')
    return component


def check_component_visible(component, family):
    if component.family_id is not None and component.family_id != family.id:
        raise NotFoundError('Food component not found')


def get_components_for_family(family):
    return (FoodComponent.query
            .filter(db.or_(FoodComponent.family_id == family.id, FoodComponent.family_id.is_(None)))
            .order_by(FoodComponent.category, FoodComponent.name)
            .all())


def serialize_recipe(recipe, include_ingredients=True):
    data = {
        'id': recipe.id,
        'family_id': recipe.family_id,
        'title': recipe.title,
        'category': recipe.category,
        'servings': recipe.servings,
        'is_favorite': bool(recipe.is_favorite),
        'is_novelty': bool(recipe.is_novelty),
        **{flag: bool(getattr(recipe, flag)) for flag in DIET_FLAGS},
    }
    if include_ingredients:
        data['ingredients'] = [
            {
                'name': i.name,
                'quantity': i.quantity,
                'unit': i.unit,
                'category': i.category,
                'contains_gluten': bool(i.contains_gluten),
                'contains_lactose': bool(i.contains_lactose),
                'allergens': i.allergens or [],
                'alternatives': i.alternatives or [],
            }
            for i in recipe.ingredients
        ]
    return data
