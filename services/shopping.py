"""
Shopping List Service

Functions for generating and managing shopping lists.

A shopping list is derived from a weekly plan: every planned meal's
ingredients are scaled to the meal's portions and guests, consolidated,
checked against the family's inventory and rounded to buyable amounts.
"""

import logging
import math
import time
from collections import OrderedDict

from constants import (
    KILOGRAM_UNITS, GRAM_UNITS, LITER_UNITS, MILLILITER_UNITS, PIECE_UNITS,
    KILOGRAM_STEP, LITER_STEP, GRAM_STEPS, MILLILITER_STEPS, DEFAULT_DECIMALS,
    GLUTEN_FREE_HINT, LACTOSE_FREE_HINT, CHILD_GUEST_FACTOR, SHOPPING_CATEGORY_LABELS,
)
from models import db, WeeklyPlan, ShoppingList, ShoppingItem
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RECIPE_SERVINGS = 4


def normalize_unit(unit):
    """Lowercase, trimmed unit without a trailing period ('Kg.' -> 'kg')."""
    return (unit or '').strip().lower().rstrip('.')


def _ceil_to_step(quantity, step):
    # The epsilon keeps exact multiples (0.75 kg, 350 g) from jumping a step
    return round(math.ceil(quantity / step - 1e-9) * step, DEFAULT_DECIMALS)


def _stepped(quantity, steps):
    for bound, step in steps:
        if bound is None or quantity < bound:
            return _ceil_to_step(quantity, step)
    return quantity


def round_quantity(quantity, unit):
    """
    Round a quantity up to an amount that can actually be bought.

    kg and l go to the next quarter, g and ml to steps that grow with the
    amount, countable units to a whole number, anything else to 2 decimals.
    Never rounds down; rounding an already rounded value changes nothing.
    """
    if quantity is None or quantity <= 0:
        return 0.0

    unit = normalize_unit(unit)
    if unit in KILOGRAM_UNITS:
        return _ceil_to_step(quantity, KILOGRAM_STEP)
    if unit in LITER_UNITS:
        return _ceil_to_step(quantity, LITER_STEP)
    if unit in GRAM_UNITS:
        return _stepped(quantity, GRAM_STEPS)
    if unit in MILLILITER_UNITS:
        return _stepped(quantity, MILLILITER_STEPS)
    if unit in PIECE_UNITS:
        return float(math.ceil(quantity - 1e-9))
    return _ceil_to_step(quantity, 10 ** -DEFAULT_DECIMALS)


def guest_count(meal):
    """Extra portions brought by a meal's guests (children count 0.7)."""
    return sum((g.adults or 0) + (g.children or 0) * CHILD_GUEST_FACTOR for g in meal.guests)


def _is_shoppable(meal):
    return not (meal.is_skipped or meal.is_school_meal or meal.is_external)


def _meal_lines(meal):
    """Yield (name, quantity, unit, category, alternatives, gluten, lactose, source) for one meal."""
    total_guests = guest_count(meal)
    portions = meal.portions or 0

    if meal.recipe is not None:
        recipe = meal.recipe
        if portions <= 0:
            return
        serving_factor = portions / (recipe.servings or DEFAULT_RECIPE_SERVINGS)
        final_factor = serving_factor * (1 + total_guests / portions)
        for ing in recipe.ingredients:
            yield (ing.name, ing.quantity * final_factor, ing.unit, ing.category or 'other',
                   ing.alternatives or [], bool(ing.contains_gluten), bool(ing.contains_lactose),
                   recipe.title)
    elif meal.components:
        # Component quantities are per person
        factor = portions + total_guests
        for mc in meal.components:
            component = mc.component
            yield (component.name, mc.quantity * factor, mc.unit, component.shopping_category or 'other',
                   [], not component.gluten_free, not component.lactose_free, None)


def aggregate_shopping_items(meals, profile=None, inventory=None):
    """
    Build shopping list lines from planned meals.

    Args:
        meals: iterable of Meal
        profile: DietProfile driving the substitution hints (optional)
        inventory: iterable of InventoryItem deducted from the totals (optional)

    Returns:
        List of item dicts sorted by (category, name)
    """
    consolidated = OrderedDict()
    for meal in meals:
        if not _is_shoppable(meal):
            continue
        for name, qty, unit, category, alternatives, gluten, lactose, source in _meal_lines(meal):
            key = (name.strip().lower(), normalize_unit(unit), category.strip().lower())
            if key in consolidated:
                item = consolidated[key]
                item['quantity'] += qty
                item['contains_gluten'] = item['contains_gluten'] or gluten
                item['contains_lactose'] = item['contains_lactose'] or lactose
            else:
                item = consolidated[key] = {
                    'name': name.strip(),
                    'quantity': qty,
                    'unit': unit.strip(),
                    'category': category.strip(),
                    'alternatives': [],
                    'recipe_names': set(),
                    'contains_gluten': gluten,
                    'contains_lactose': lactose,
                }
            for alt in alternatives:
                if alt not in item['alternatives']:
                    item['alternatives'].append(alt)
            if source:
                item['recipe_names'].add(source)

    stock = {}
    for inv in inventory or []:
        if inv.quantity and inv.quantity > 0:
            name = inv.name.strip().lower()
            stock[name] = stock.get(name, 0.0) + inv.quantity

    items = []
    for item in consolidated.values():
        alternatives = list(item['alternatives'])
        if profile is not None and profile.gluten_free and item['contains_gluten']:
            alternatives.insert(0, GLUTEN_FREE_HINT)
        if profile is not None and profile.lactose_free and item['contains_lactose']:
            alternatives.insert(0, LACTOSE_FREE_HINT)

        required = item['quantity']
        in_stock = False
        available = stock.get(item['name'].lower())
        if available:
            required = max(0.0, required - available)
            in_stock = required == 0

        items.append({
            'name': item['name'],
            'quantity': round_quantity(required, item['unit']),
            'unit': item['unit'],
            'category': item['category'],
            'alternatives': alternatives,
            'recipe_names': sorted(item['recipe_names']),
            'in_stock': in_stock,
        })

    items.sort(key=lambda x: (x['category'].lower(), x['name'].lower()))
    return items


def generate_shopping_list(weekly_plan_id):
    """
    Rebuild the shopping list of a weekly plan from scratch.

    Any previous list (checked state included) is replaced.
    """
    started = time.perf_counter()
    plan = db.session.get(WeeklyPlan, weekly_plan_id)
    if plan is None:
        raise NotFoundError('Weekly plan not found')

    family = plan.family
    items = aggregate_shopping_items(plan.meals, family.diet_profile, family.inventory)

    existing = plan.shopping_list
    if existing is not None:
        db.session.delete(existing)
        db.session.flush()
        db.session.expire(plan, ['shopping_list'])

    shopping_list = ShoppingList(family_id=family.id, weekly_plan=plan)
    for position, data in enumerate(items):
        shopping_list.items.append(ShoppingItem(position=position, checked=False, **data))
    db.session.add(shopping_list)
    db.session.commit()

    logger.info('Generated shopping list for plan %s: %d items in %.1f ms',
                plan.id, len(items), (time.perf_counter() - started) * 1000)
    return shopping_list


def get_shopping_list(weekly_plan_id):
    shopping_list = ShoppingList.query.filter_by(weekly_plan_id=weekly_plan_id).first()
    if shopping_list is None:
        raise NotFoundError('Shopping list not found')
    return shopping_list


def group_items_by_category(items):
    """Group items by category, keeping list order: [(label, [items]), ...]."""
    groups = OrderedDict()
    for item in items:
        category = item['category'] if isinstance(item, dict) else item.category
        key = (category or 'other').lower()
        groups.setdefault(key, []).append(item)
    return [(SHOPPING_CATEGORY_LABELS.get(key, key.title()), group) for key, group in groups.items()]


def serialize_shopping_item(item):
    return {
        'id': item.id,
        'name': item.name,
        'quantity': item.quantity,
        'unit': item.unit,
        'category': item.category,
        'alternatives': item.alternatives or [],
        'recipe_names': item.recipe_names or [],
        'checked': bool(item.checked),
        'in_stock': bool(item.in_stock),
    }


def _get_item(item_id):
    item = db.session.get(ShoppingItem, item_id)
    if item is None:
        raise NotFoundError('Shopping item not found')
    return item


def update_shopping_item(item_id, fields):
    """Manually edit quantity, unit, checked or in_stock on one item."""
    if not isinstance(fields, dict):
        raise ValidationError('Item changes must be an object')
    allowed = {'quantity', 'unit', 'checked', 'in_stock'}
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f'Cannot update field(s): {", ".join(sorted(unknown))}')

    item = _get_item(item_id)
    if 'quantity' in fields:
        try:
            quantity = float(fields['quantity'])
        except (TypeError, ValueError):
            raise ValidationError('Quantity must be a number')
        if quantity < 0 or math.isnan(quantity) or math.isinf(quantity):
            raise ValidationError('Quantity must be zero or more')
        item.quantity = quantity
    if 'unit' in fields:
        unit = str(fields['unit'] or '').strip()
        if not unit:
            raise ValidationError('Unit is required')
        item.unit = unit[:20]
    if 'checked' in fields:
        item.checked = bool(fields['checked'])
    if 'in_stock' in fields:
        item.in_stock = bool(fields['in_stock'])

    db.session.commit()
    return item


def toggle_item_checked(item_id):
    item = _get_item(item_id)
    item.checked = not item.checked
    db.session.commit()
    return item
