"""
Weekly Plan Service

Creates weekly plans from the generator's output and handles everything a
family does with a plan afterwards: editing meals, moving through the
DRAFT -> IN_VALIDATION -> VALIDATED -> LOCKED workflow, cutoffs and
template switches.

Every change is written to the audit log in the same transaction, and
every change to meals is followed by a shopping list rebuild. A failed
rebuild is logged and never undoes the change itself.
"""

import logging
from datetime import date, datetime, time, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from constants import (
    DAYS_OF_WEEK, MEAL_TYPES, VALID_DAYS, VALID_MEAL_TYPES, VALID_PLAN_STATUSES,
    STATUS_TRANSITIONS, UNLOCKABLE_STATUSES, DEFAULT_TEMPLATE_NAME, MAX_LENGTHS,
)
from models import db, WeeklyPlan, Meal, MealGuest, MealComponent, MealScheduleTemplate, SchoolMenu
from utils.errors import AppError, ValidationError, PermissionDeniedError, NotFoundError
from utils.sanitizer import sanitize_name
from .audit import log_change
from .dietary import is_recipe_compliant, is_component_compliant
from .families import is_privileged, require_privileged
from .planning import PlanMode, parse_mode, generate_plan, NOVELTY_WEEKLY_CAP, COMPONENT_MEAL_RATIO
from .recipes import (
    get_recipes_for_family, get_components_for_family, check_recipe_visible, check_component_visible,
)
from .shopping import generate_shopping_list, guest_count

logger = logging.getLogger(__name__)

DEFAULT_PLAN_LIST_LIMIT = 10
MAX_PLAN_LIST_LIMIT = 52


# ============ DATES AND CUTOFF

def week_number_for(day):
    """ISO (year, week number) of a date."""
    iso = day.isocalendar()
    return iso[0], iso[1]


def week_start_for(day):
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def parse_date(value, field='date'):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f'Invalid {field}, expected YYYY-MM-DD')


def parse_time(value):
    """'HH:MM' -> datetime.time; None stays None."""
    if value in (None, ''):
        return None
    try:
        return datetime.strptime(str(value), '%H:%M').time()
    except ValueError:
        raise ValidationError('Invalid time, expected HH:MM')


def is_after_cutoff(cutoff_date, cutoff_time=None, now=None):
    """
    True once the cutoff has passed. No cutoff date means no cutoff.

    Without a time the cutoff is the end of the cutoff day.
    """
    if cutoff_date is None:
        return False
    cutoff_at = datetime.combine(cutoff_date, parse_time(cutoff_time) or time(23, 59, 59))
    return (now or datetime.now()) > cutoff_at


def plan_is_after_cutoff(plan, now=None):
    return is_after_cutoff(plan.cutoff_date, plan.cutoff_time, now)


# ============ LOOKUPS

def get_plan(plan_id):
    plan = db.session.get(WeeklyPlan, plan_id)
    if plan is None:
        raise NotFoundError('Weekly plan not found')
    return plan


def get_meal(plan, meal_id):
    meal = db.session.get(Meal, meal_id)
    if meal is None or meal.weekly_plan_id != plan.id:
        raise NotFoundError('Meal not found')
    return meal


def check_member_of_plan(plan, member):
    if member is None or member.family_id != plan.family_id:
        raise PermissionDeniedError('Not a member of this family')


def list_family_plans(family, member, limit=DEFAULT_PLAN_LIST_LIMIT):
    """The family's plans, most recent week first; limit is clamped to 1..MAX_PLAN_LIST_LIMIT."""
    if member is None or member.family_id != family.id:
        raise PermissionDeniedError('Not a member of this family')
    try:
        limit = max(1, min(int(limit), MAX_PLAN_LIST_LIMIT))
    except (TypeError, ValueError):
        raise ValidationError('limit must be an integer')
    return (WeeklyPlan.query.filter_by(family_id=family.id)
            .order_by(WeeklyPlan.week_start_date.desc())
            .limit(limit)
            .all())


def resolve_template(family, template=None):
    """
    Template used for a new plan: the requested one, else the family
    default, else the system standard week. None means the built-in schedule.
    """
    if template is not None:
        if not template.is_system and template.family_id != family.id:
            raise PermissionDeniedError('Template belongs to another family')
        return template
    if family.default_template is not None:
        return family.default_template
    return MealScheduleTemplate.query.filter_by(is_system=True, name=DEFAULT_TEMPLATE_NAME).first()


def get_template(template_id):
    template = db.session.get(MealScheduleTemplate, template_id)
    if template is None:
        raise NotFoundError('Template not found')
    return template


def school_lunches_for_week(family, week_start):
    """{day_of_week: category} for each school lunch in the week."""
    menus = SchoolMenu.query.filter(
        SchoolMenu.family_id == family.id,
        SchoolMenu.date >= week_start,
        SchoolMenu.date <= week_start + timedelta(days=6),
        SchoolMenu.meal_type == 'LUNCH',
    ).all()
    return {DAYS_OF_WEEK[m.date.weekday()]: m.category for m in menus}


def refresh_shopping_list(plan):
    """Rebuild the plan's shopping list; failures are logged, not raised."""
    try:
        return generate_shopping_list(plan.id)
    except (SQLAlchemyError, AppError):
        db.session.rollback()
        logger.exception('Failed to regenerate shopping list for plan %s', plan.id)
        return None


def _generator_settings():
    return {
        'novelty_cap': current_app.config.get('NOVELTY_WEEKLY_CAP', NOVELTY_WEEKLY_CAP),
        'component_ratio': current_app.config.get('COMPONENT_MEAL_RATIO', COMPONENT_MEAL_RATIO),
    }


def _default_portions(family):
    return max(1, len(family.members))


def _build_meals(plan, slots, portions, skip_slots=()):
    for slot in slots:
        if (slot.day_of_week, slot.meal_type) in skip_slots:
            continue
        meal = Meal(
            day_of_week=slot.day_of_week,
            meal_type=slot.meal_type,
            recipe_id=slot.recipe_id,
            portions=portions,
            is_school_meal=slot.is_school_meal,
        )
        for position, component in enumerate(slot.components):
            meal.components.append(MealComponent(
                component_id=component.id,
                quantity=component.default_quantity,
                unit=component.unit,
                position=position,
            ))
        plan.meals.append(meal)


# ============ GENERATION

def generate_weekly_plan(family, week_start, mode=PlanMode.AUTO, template=None, member=None, rng=None):
    """
    Generate and store a DRAFT plan for the week containing week_start.

    Returns (plan, warnings). Raises ValidationError when the family already
    has a plan that week, NoRecipesAvailableError / NoFavoritesError when the
    generator cannot fill the week.
    """
    if member is not None:
        if member.family_id != family.id:
            raise PermissionDeniedError('Not a member of this family')
        require_privileged(member, 'generate a plan')

    mode = parse_mode(mode)
    week_start = week_start_for(parse_date(week_start, 'week start'))
    year, week_number = week_number_for(week_start)

    existing = WeeklyPlan.query.filter_by(family_id=family.id, week_start_date=week_start).first()
    if existing is not None:
        raise ValidationError(f'A plan already exists for week {week_number} of {year}')

    template = resolve_template(family, template)
    components = get_components_for_family(family) if mode == PlanMode.AUTO else []
    result = generate_plan(
        family.diet_profile,
        get_recipes_for_family(family),
        mode=mode,
        schedule=template.schedule if template is not None else None,
        components=components,
        school_lunches=school_lunches_for_week(family, week_start),
        rng=rng,
        **_generator_settings(),
    )

    plan = WeeklyPlan(
        family_id=family.id,
        week_start_date=week_start,
        week_number=week_number,
        year=year,
        status='DRAFT',
        template_id=template.id if template is not None else None,
    )
    _build_meals(plan, result.slots, _default_portions(family))
    db.session.add(plan)
    db.session.flush()

    log_change(plan.id, 'PLAN_CREATED', member=member,
               new_value={'mode': mode.value, 'meals': len(plan.meals)},
               week=week_number, mode=mode.value)
    db.session.commit()
    logger.info('Created %s plan %s for family %s, week %d/%d with %d meals',
                mode.value, plan.id, family.id, week_number, year, len(plan.meals))

    refresh_shopping_list(plan)
    return plan, result.warnings


def switch_template(plan, member, template, rng=None):
    """
    Regenerate a DRAFT plan's meals for another schedule template.

    Locked meals are kept as they are.
    """
    check_member_of_plan(plan, member)
    require_privileged(member, 'switch templates')
    if plan.status != 'DRAFT':
        raise ValidationError('Template can only be switched on a draft plan')

    family = plan.family
    template = resolve_template(family, template)
    if template is None:
        raise NotFoundError('Template not found')

    locked = {(m.day_of_week, m.meal_type) for m in plan.meals if m.locked}
    for meal in [m for m in plan.meals if not m.locked]:
        plan.meals.remove(meal)
    db.session.flush()

    result = generate_plan(
        family.diet_profile,
        get_recipes_for_family(family),
        mode=PlanMode.AUTO,
        schedule=template.schedule,
        components=get_components_for_family(family),
        school_lunches=school_lunches_for_week(family, plan.week_start_date),
        rng=rng,
        **_generator_settings(),
    )
    _build_meals(plan, result.slots, _default_portions(family), skip_slots=locked)

    old_template_id = plan.template_id
    plan.template_id = template.id
    log_change(plan.id, 'TEMPLATE_SWITCHED', member=member,
               old_value={'template_id': old_template_id}, new_value={'template_id': template.id},
               template=template.name)
    db.session.commit()

    refresh_shopping_list(plan)
    return plan, result.warnings


# ============ MEAL EDITS

def check_can_modify_meal(meal, member, structural=False, now=None):
    """
    Raise unless member may change this meal.

    Locked plans and locked meals are read-only for everyone. Structural
    edits (recipe, lock, add, skip) need an admin or parent, as does any edit
    on a validated plan or past the cutoff.
    """
    plan = meal.weekly_plan
    check_member_of_plan(plan, member)
    if plan.status == 'LOCKED':
        raise ValidationError('This plan is locked')
    if meal.locked:
        raise ValidationError('This meal is locked')
    if is_privileged(member):
        return
    if structural:
        raise PermissionDeniedError('Only an admin or parent can make this change')
    if plan.status == 'VALIDATED':
        raise PermissionDeniedError('This plan is validated')
    if plan_is_after_cutoff(plan, now):
        raise PermissionDeniedError('The cutoff for this plan has passed')


def _require_draft(plan, action):
    if plan.status != 'DRAFT':
        raise ValidationError(f'Can only {action} on a draft plan')


def parse_portions(value):
    try:
        portions = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Portions must be a whole number')
    if portions < 1:
        raise ValidationError('Portions must be at least 1')
    return portions


def _slot_data(meal):
    return {'day': meal.day_of_week, 'meal_type': meal.meal_type}


def update_meal_portions(meal, member, portions):
    check_can_modify_meal(meal, member)
    portions = parse_portions(portions)

    old_portions = meal.portions
    meal.portions = portions
    log_change(meal.weekly_plan_id, 'PORTIONS_CHANGED', member=member, meal_id=meal.id,
               old_value={'portions': old_portions}, new_value={'portions': portions},
               old_portions=old_portions, new_portions=portions, **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(meal.weekly_plan)
    return meal


def swap_meal_recipe(meal, member, recipe):
    """Put another recipe on a meal; it must be visible to and compliant with the family."""
    check_can_modify_meal(meal, member, structural=True)
    plan = meal.weekly_plan
    check_recipe_visible(recipe, plan.family)
    if not is_recipe_compliant(recipe, plan.family.diet_profile):
        raise ValidationError(f'"{recipe.title}" does not fit the family diet')
    if meal.is_skipped:
        raise ValidationError('Restore the meal before choosing a recipe')

    old_recipe = meal.recipe
    meal.recipe = recipe
    meal.components.clear()
    meal.is_school_meal = False
    log_change(plan.id, 'RECIPE_CHANGED', member=member, meal_id=meal.id,
               old_value={'recipe_id': old_recipe.id if old_recipe else None},
               new_value={'recipe_id': recipe.id},
               old_recipe=old_recipe.title if old_recipe else None, new_recipe=recipe.title,
               **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(plan)
    return meal


def set_meal_lock(meal, member, locked):
    plan = meal.weekly_plan
    check_member_of_plan(plan, member)
    require_privileged(member, 'lock meals')
    if plan.status == 'LOCKED':
        raise ValidationError('This plan is locked')

    locked = bool(locked)
    if meal.locked == locked:
        return meal
    meal.locked = locked
    log_change(plan.id, 'MEAL_LOCKED' if locked else 'MEAL_UNLOCKED', member=member, meal_id=meal.id,
               old_value={'locked': not locked}, new_value={'locked': locked}, **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(plan)
    return meal


def add_meal(plan, member, day_of_week, meal_type, recipe=None, portions=None):
    check_member_of_plan(plan, member)
    require_privileged(member, 'add meals')
    _require_draft(plan, 'add meals')

    day_of_week = (day_of_week or '').upper()
    meal_type = (meal_type or '').upper()
    if day_of_week not in VALID_DAYS:
        raise ValidationError(f'Invalid day: {day_of_week}')
    if meal_type not in VALID_MEAL_TYPES:
        raise ValidationError(f'Invalid meal type: {meal_type}')
    if any(m.day_of_week == day_of_week and m.meal_type == meal_type for m in plan.meals):
        raise ValidationError(f'{day_of_week} {meal_type} is already planned')

    if portions is not None:
        portions = parse_portions(portions)

    if recipe is not None:
        check_recipe_visible(recipe, plan.family)
        if not is_recipe_compliant(recipe, plan.family.diet_profile):
            raise ValidationError(f'"{recipe.title}" does not fit the family diet')

    meal = Meal(
        day_of_week=day_of_week,
        meal_type=meal_type,
        recipe=recipe,
        portions=_default_portions(plan.family) if portions is None else portions,
    )
    plan.meals.append(meal)
    db.session.flush()

    log_change(plan.id, 'MEAL_ADDED', member=member, meal_id=meal.id,
               new_value={'recipe_id': recipe.id if recipe else None}, **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(plan)
    return meal


def skip_meal(meal, member, reason=None):
    """Mark a meal as not happening; its recipe and components are dropped."""
    check_can_modify_meal(meal, member, structural=True)
    plan = meal.weekly_plan
    _require_draft(plan, 'skip meals')
    if meal.is_skipped:
        raise ValidationError('Meal is already skipped')

    reason = sanitize_name(reason, MAX_LENGTHS['skip_reason'], default=None)
    old_recipe_id = meal.recipe_id
    meal.is_skipped = True
    meal.skip_reason = reason
    meal.recipe = None
    meal.components.clear()
    log_change(plan.id, 'MEAL_REMOVED', member=member, meal_id=meal.id,
               old_value={'recipe_id': old_recipe_id}, new_value={'skip_reason': reason},
               reason=f'({reason})' if reason else '', **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(plan)
    return meal


def restore_meal(meal, member):
    check_can_modify_meal(meal, member, structural=True)
    plan = meal.weekly_plan
    _require_draft(plan, 'restore meals')
    if not meal.is_skipped:
        raise ValidationError('Meal is not skipped')

    meal.is_skipped = False
    meal.skip_reason = None
    log_change(plan.id, 'MEAL_ADDED', member=member, meal_id=meal.id,
               new_value={'restored': True}, **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(plan)
    return meal


def add_meal_guests(meal, member, adults=0, children=0, note=None):
    check_can_modify_meal(meal, member)
    try:
        adults = int(adults or 0)
        children = int(children or 0)
    except (TypeError, ValueError):
        raise ValidationError('Guest counts must be whole numbers')
    if adults < 0 or children < 0:
        raise ValidationError('Guest counts cannot be negative')
    if adults == 0 and children == 0:
        raise ValidationError('Add at least one guest')

    old_guests = guest_count(meal)
    meal.guests.append(MealGuest(
        adults=adults,
        children=children,
        note=sanitize_name(note, MAX_LENGTHS['guest_note'], default=None),
    ))
    log_change(meal.weekly_plan_id, 'ATTENDANCE_CHANGED', member=member, meal_id=meal.id,
               old_value={'guests': old_guests}, new_value={'guests': guest_count(meal)},
               **_slot_data(meal))
    db.session.commit()
    refresh_shopping_list(meal.weekly_plan)
    return meal


# ============ MEAL COMPONENTS

def get_meal_component(meal, meal_component_id):
    meal_component = db.session.get(MealComponent, meal_component_id)
    if meal_component is None or meal_component.meal_id != meal.id:
        raise NotFoundError('Meal component not found')
    return meal_component


def parse_component_quantity(value):
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise ValidationError('Quantity must be a number')
    if not quantity > 0:
        raise ValidationError('Quantity must be positive')
    return quantity


def _parse_unit(value):
    unit = str(value or '').strip()
    if not unit:
        raise ValidationError('Unit is required')
    return unit[:20]


def _check_component_fits(component, plan):
    check_component_visible(component, plan.family)
    if not is_component_compliant(component, plan.family.diet_profile):
        raise ValidationError(f'"{component.name}" does not fit the family diet')


def _check_component_meal(meal):
    if meal.is_skipped:
        raise ValidationError('Restore the meal before changing its components')
    if meal.recipe_id is not None:
        raise ValidationError('This meal uses a recipe; components only apply to meals without one')


def _renumber_components(meal):
    for position, meal_component in enumerate(meal.components):
        meal_component.position = position


def _component_data(meal_component):
    # Read through the relationship; component_id lags until the next flush
    return {'component_id': meal_component.component.id, 'quantity': meal_component.quantity,
            'unit': meal_component.unit}


def add_meal_component(meal, member, component, quantity=None, unit=None, position=None):
    """
    Add a food component to a meal without a recipe.

    Quantity is per person and defaults to the component's own default, as
    does the unit. position inserts before that index; default is the end.
    """
    check_can_modify_meal(meal, member, structural=True)
    _check_component_meal(meal)
    plan = meal.weekly_plan
    _check_component_fits(component, plan)

    meal_component = MealComponent(
        component=component,
        quantity=component.default_quantity if quantity is None else parse_component_quantity(quantity),
        unit=_parse_unit(component.unit if unit is None else unit),
    )
    components = list(meal.components)
    if position is None:
        components.append(meal_component)
    else:
        try:
            position = int(position)
        except (TypeError, ValueError):
            raise ValidationError('Position must be a whole number')
        if position < 0:
            raise ValidationError('Position cannot be negative')
        components.insert(position, meal_component)
    meal.components = components
    _renumber_components(meal)
    db.session.flush()

    log_change(plan.id, 'COMPONENT_ADDED', member=member, meal_id=meal.id,
               new_value=_component_data(meal_component), component=component.name)
    db.session.commit()
    refresh_shopping_list(plan)
    return meal_component


def swap_meal_component(meal, member, meal_component, component, quantity=None, unit=None):
    """Replace one component by another (chicken -> salmon), keeping its place."""
    check_can_modify_meal(meal, member, structural=True)
    _check_component_meal(meal)
    plan = meal.weekly_plan
    _check_component_fits(component, plan)

    old_value = _component_data(meal_component)
    old_name = meal_component.component.name
    meal_component.component = component
    meal_component.quantity = (component.default_quantity if quantity is None
                               else parse_component_quantity(quantity))
    meal_component.unit = _parse_unit(component.unit if unit is None else unit)

    log_change(plan.id, 'COMPONENT_CHANGED', member=member, meal_id=meal.id,
               old_value=old_value, new_value=_component_data(meal_component),
               component=f'{old_name} -> {component.name}')
    db.session.commit()
    refresh_shopping_list(plan)
    return meal_component


def update_meal_component(meal, member, meal_component, fields):
    """
    Change quantity, unit or position of a meal component.

    Like portions, quantities may be changed by any member while the plan
    is still open to them.
    """
    check_can_modify_meal(meal, member)
    _check_component_meal(meal)
    if not isinstance(fields, dict):
        raise ValidationError('Component changes must be an object')
    unknown = set(fields) - {'quantity', 'unit', 'position'}
    if unknown:
        raise ValidationError(f'Cannot update field(s): {", ".join(sorted(unknown))}')
    if not fields:
        raise ValidationError('Nothing to update')

    old_value = _component_data(meal_component)
    if 'quantity' in fields:
        meal_component.quantity = parse_component_quantity(fields['quantity'])
    if 'unit' in fields:
        meal_component.unit = _parse_unit(fields['unit'])
    if 'position' in fields:
        try:
            position = int(fields['position'])
        except (TypeError, ValueError):
            raise ValidationError('Position must be a whole number')
        if position < 0:
            raise ValidationError('Position cannot be negative')
        components = [mc for mc in meal.components if mc is not meal_component]
        components.insert(position, meal_component)
        meal.components = components
        _renumber_components(meal)

    log_change(meal.weekly_plan_id, 'COMPONENT_CHANGED', member=member, meal_id=meal.id,
               old_value=old_value, new_value=_component_data(meal_component),
               component=meal_component.component.name)
    db.session.commit()
    refresh_shopping_list(meal.weekly_plan)
    return meal_component


def remove_meal_component(meal, member, meal_component):
    check_can_modify_meal(meal, member, structural=True)
    _check_component_meal(meal)
    plan = meal.weekly_plan

    old_value = _component_data(meal_component)
    name = meal_component.component.name
    meal.components.remove(meal_component)
    _renumber_components(meal)
    log_change(plan.id, 'COMPONENT_REMOVED', member=member, meal_id=meal.id,
               old_value=old_value, component=name)
    db.session.commit()
    refresh_shopping_list(plan)
    return meal


# ============ STATUS WORKFLOW

def change_plan_status(plan, member, new_status):
    """Move a plan forward in its workflow; backwards is only possible through unlock_plan."""
    check_member_of_plan(plan, member)
    require_privileged(member, 'change the plan status')
    new_status = (new_status or '').upper()
    if new_status not in VALID_PLAN_STATUSES:
        raise ValidationError(f'Invalid status: {new_status or "(empty)"}')
    if new_status == 'VALIDATED':
        return validate_plan(plan, member)
    if new_status not in STATUS_TRANSITIONS.get(plan.status, set()):
        raise ValidationError(f'Cannot move plan from {plan.status} to {new_status}')

    old_status = plan.status
    plan.status = new_status
    log_change(plan.id, 'PLAN_STATUS_CHANGED', member=member,
               old_value={'status': old_status}, new_value={'status': new_status},
               old_status=old_status, new_status=new_status)
    db.session.commit()
    logger.info('Plan %s moved from %s to %s', plan.id, old_status, new_status)
    return plan


def validate_plan(plan, member):
    """
    Validate a plan. Meals that still have neither a recipe nor components
    are skipped so the plan has no empty slot left.
    """
    check_member_of_plan(plan, member)
    require_privileged(member, 'validate the plan')
    if 'VALIDATED' not in STATUS_TRANSITIONS.get(plan.status, set()):
        raise ValidationError(f'Cannot validate a plan in status {plan.status}')

    skipped = 0
    for meal in plan.meals:
        if meal.is_skipped or meal.is_school_meal or meal.is_external:
            continue
        if meal.recipe_id is None and not meal.components:
            meal.is_skipped = True
            meal.skip_reason = 'No recipe assigned'
            skipped += 1

    old_status = plan.status
    plan.status = 'VALIDATED'
    plan.validated_at = datetime.now()
    log_change(plan.id, 'PLAN_STATUS_CHANGED', member=member,
               old_value={'status': old_status}, new_value={'status': 'VALIDATED', 'auto_skipped': skipped},
               old_status=old_status, new_status='VALIDATED')
    db.session.commit()
    logger.info('Plan %s validated (%d empty meals skipped)', plan.id, skipped)

    if skipped:
        refresh_shopping_list(plan)
    return plan


def unlock_plan(plan, member):
    check_member_of_plan(plan, member)
    require_privileged(member, 'unlock the plan')
    if plan.status not in UNLOCKABLE_STATUSES:
        raise ValidationError(f'Cannot unlock a plan in status {plan.status}')

    old_status = plan.status
    plan.status = 'DRAFT'
    plan.validated_at = None
    log_change(plan.id, 'PLAN_STATUS_CHANGED', member=member,
               old_value={'status': old_status}, new_value={'status': 'DRAFT'},
               old_status=old_status, new_status='DRAFT')
    db.session.commit()
    logger.info('Plan %s unlocked from %s', plan.id, old_status)
    return plan


def set_cutoff(plan, member, cutoff_date, cutoff_time=None, allow_comments_after_cutoff=None):
    """Set (or clear, with cutoff_date None) the date after which only admins and parents edit."""
    check_member_of_plan(plan, member)
    require_privileged(member, 'set the cutoff')

    new_date = parse_date(cutoff_date, 'cutoff date') if cutoff_date else None
    new_time = parse_time(cutoff_time)
    old_value = {
        'cutoff_date': plan.cutoff_date.isoformat() if plan.cutoff_date else None,
        'cutoff_time': plan.cutoff_time,
    }

    plan.cutoff_date = new_date
    plan.cutoff_time = new_time.strftime('%H:%M') if new_time else None
    if allow_comments_after_cutoff is not None:
        plan.allow_comments_after_cutoff = bool(allow_comments_after_cutoff)

    new_value = {
        'cutoff_date': new_date.isoformat() if new_date else None,
        'cutoff_time': plan.cutoff_time,
        'allow_comments_after_cutoff': plan.allow_comments_after_cutoff,
    }
    cutoff_label = ' '.join(v for v in (new_value['cutoff_date'], plan.cutoff_time) if v) or None
    log_change(plan.id, 'CUTOFF_CHANGED', member=member, old_value=old_value, new_value=new_value,
               cutoff=cutoff_label)
    db.session.commit()
    return plan


# ============ SERIALIZATION

def serialize_meal(meal):
    return {
        'id': meal.id,
        'day_of_week': meal.day_of_week,
        'meal_type': meal.meal_type,
        'recipe': {'id': meal.recipe.id, 'title': meal.recipe.title, 'category': meal.recipe.category}
        if meal.recipe else None,
        'components': [
            {'id': mc.id, 'component_id': mc.component_id, 'name': mc.component.name,
             'quantity': mc.quantity, 'unit': mc.unit, 'position': mc.position}
            for mc in meal.components
        ],
        'portions': meal.portions,
        'guests': [{'adults': g.adults, 'children': g.children, 'note': g.note} for g in meal.guests],
        'locked': bool(meal.locked),
        'is_school_meal': bool(meal.is_school_meal),
        'is_external': bool(meal.is_external),
        'is_skipped': bool(meal.is_skipped),
        'skip_reason': meal.skip_reason,
    }


def serialize_plan(plan, warnings=None):
    meals = sorted(plan.meals, key=lambda m: (DAYS_OF_WEEK.index(m.day_of_week), MEAL_TYPES.index(m.meal_type)))
    data = {
        'id': plan.id,
        'family_id': plan.family_id,
        'week_start_date': plan.week_start_date.isoformat(),
        'week_number': plan.week_number,
        'year': plan.year,
        'status': plan.status,
        'cutoff_date': plan.cutoff_date.isoformat() if plan.cutoff_date else None,
        'cutoff_time': plan.cutoff_time,
        'allow_comments_after_cutoff': bool(plan.allow_comments_after_cutoff),
        'template_id': plan.template_id,
        'validated_at': plan.validated_at.isoformat() if plan.validated_at else None,
        'meals': [serialize_meal(m) for m in meals],
    }
    if warnings is not None:
        data['warnings'] = warnings
    return data
