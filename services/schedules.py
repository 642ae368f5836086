"""
Schedule Service

Meal schedule templates (which meal types are planned on which days) and
the school menus that replace home lunches. System templates are shared by
every family and read-only; families manage their own.

Neither touches existing plans: templates and school menus are read when a
plan is generated or its template switched.
"""

import logging

from constants import DAYS_OF_WEEK, VALID_MEAL_TYPES, MAX_LENGTHS
from models import db, MealScheduleTemplate, SchoolMenu, WeeklyPlan
from utils.errors import ValidationError, PermissionDeniedError, NotFoundError
from utils.sanitizer import sanitize_name
from .families import require_privileged
from .planning import iter_schedule_slots
from .plans import parse_date, resolve_template

logger = logging.getLogger(__name__)


def _check_family_member(family, member):
    if member is None or member.family_id != family.id:
        raise PermissionDeniedError('Not a member of this family')


# ============ TEMPLATES

def clean_schedule(schedule):
    """
    Validate a schedule and return it normalised: one entry per day, in week
    order, meal types in day order, duplicates dropped.
    """
    if not isinstance(schedule, list) or not schedule:
        raise ValidationError('Schedule must be a non-empty list')
    for entry in schedule:
        if not isinstance(entry, dict):
            raise ValidationError('Each schedule entry must be an object')
        if not isinstance(entry.get('meal_types'), list) or not entry['meal_types']:
            raise ValidationError('Each schedule entry needs at least one meal type')

    by_day = {}
    for day, meal_type in iter_schedule_slots(schedule):
        by_day.setdefault(day, []).append(meal_type)
    return [{'day_of_week': day, 'meal_types': by_day[day]} for day in DAYS_OF_WEEK if day in by_day]


def list_templates(family):
    """System templates first, then the family's own, each sorted by name."""
    return (MealScheduleTemplate.query
            .filter(db.or_(MealScheduleTemplate.is_system.is_(True),
                           MealScheduleTemplate.family_id == family.id))
            .order_by(MealScheduleTemplate.is_system.desc(), MealScheduleTemplate.name)
            .all())


def get_family_template(family, template_id):
    """A template the family may use; other families' templates are not found."""
    template = db.session.get(MealScheduleTemplate, template_id)
    if template is None or not (template.is_system or template.family_id == family.id):
        raise NotFoundError('Template not found')
    return template


def _clean_template_name(family, name, exclude_id=None):
    name = sanitize_name(name, MAX_LENGTHS['template_name'])
    if not name:
        raise ValidationError('Template name is required')
    query = MealScheduleTemplate.query.filter_by(family_id=family.id, name=name)
    if exclude_id is not None:
        query = query.filter(MealScheduleTemplate.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(f'A template named "{name}" already exists for this family')
    return name


def _check_own_template(template, family):
    if template.is_system:
        raise PermissionDeniedError('System templates cannot be changed')
    if template.family_id != family.id:
        raise PermissionDeniedError('Template belongs to another family')


def create_template(family, member, name, schedule, description=None):
    _check_family_member(family, member)
    require_privileged(member, 'manage schedule templates')

    template = MealScheduleTemplate(
        family_id=family.id,
        name=_clean_template_name(family, name),
        description=sanitize_name(description, MAX_LENGTHS['template_description']),
        is_system=False,
        schedule=clean_schedule(schedule),
    )
    db.session.add(template)
    db.session.commit()
    logger.info('Family %s created schedule template %s (%r)', family.id, template.id, template.name)
    return template


def update_template(template, family, member, name=None, description=None, schedule=None):
    """Rename, describe or reschedule one of the family's templates. None leaves a field as is."""
    _check_family_member(family, member)
    require_privileged(member, 'manage schedule templates')
    _check_own_template(template, family)

    if name is not None:
        template.name = _clean_template_name(family, name, exclude_id=template.id)
    if description is not None:
        template.description = sanitize_name(description, MAX_LENGTHS['template_description'])
    if schedule is not None:
        template.schedule = clean_schedule(schedule)
    db.session.commit()
    return template


def delete_template(template, family, member):
    """Delete one of the family's templates; plans that used it keep their meals."""
    _check_family_member(family, member)
    require_privileged(member, 'manage schedule templates')
    _check_own_template(template, family)
    if family.default_template_id == template.id:
        raise ValidationError('Cannot delete the family default template')

    WeeklyPlan.query.filter_by(template_id=template.id).update({'template_id': None})
    db.session.delete(template)
    db.session.commit()
    logger.info('Family %s deleted schedule template %s', family.id, template.id)


def set_default_template(family, member, template):
    """Template used for new plans when none is asked for; None goes back to the standard week."""
    _check_family_member(family, member)
    require_privileged(member, 'change the default template')
    if template is not None:
        resolve_template(family, template)
    family.default_template = template
    db.session.commit()
    return family


def serialize_template(template):
    return {
        'id': template.id,
        'family_id': template.family_id,
        'name': template.name,
        'description': template.description or '',
        'is_system': bool(template.is_system),
        'schedule': template.schedule,
    }


# ============ SCHOOL MENUS

def list_school_menus(family, start_date=None, end_date=None):
    """School menus by date; either bound may be left open."""
    query = SchoolMenu.query.filter_by(family_id=family.id)
    if start_date:
        query = query.filter(SchoolMenu.date >= parse_date(start_date, 'start date'))
    if end_date:
        query = query.filter(SchoolMenu.date <= parse_date(end_date, 'end date'))
    return query.order_by(SchoolMenu.date, SchoolMenu.id).all()


def get_school_menu(family, menu_id):
    menu = db.session.get(SchoolMenu, menu_id)
    if menu is None or menu.family_id != family.id:
        raise NotFoundError('School menu not found')
    return menu


def _clean_menu_title(title):
    title = sanitize_name(title, MAX_LENGTHS['school_menu_title'])
    if not title:
        raise ValidationError('Menu title is required')
    return title


def _check_menu_slot_free(family, menu_date, meal_type, exclude_id=None):
    query = SchoolMenu.query.filter_by(family_id=family.id, date=menu_date, meal_type=meal_type)
    if exclude_id is not None:
        query = query.filter(SchoolMenu.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(f'A school menu already exists for {menu_date.isoformat()} {meal_type}')


def create_school_menu(family, member, menu_date, title, meal_type='LUNCH', category=None):
    """
    Record what the children eat at school on a day.

    A LUNCH menu turns that day's lunch into a school meal in plans generated
    afterwards, and its category is avoided by the following meal.
    """
    _check_family_member(family, member)
    require_privileged(member, 'manage school menus')

    menu_date = parse_date(menu_date)
    meal_type = (meal_type or 'LUNCH').upper()
    if meal_type not in VALID_MEAL_TYPES:
        raise ValidationError(f'Invalid meal type: {meal_type}')
    _check_menu_slot_free(family, menu_date, meal_type)

    menu = SchoolMenu(
        family_id=family.id,
        date=menu_date,
        meal_type=meal_type,
        title=_clean_menu_title(title),
        category=sanitize_name(category, MAX_LENGTHS['category'], default=None),
    )
    db.session.add(menu)
    db.session.commit()
    return menu


def update_school_menu(menu, member, fields):
    """Change title or category of a school menu."""
    family = menu.family
    _check_family_member(family, member)
    require_privileged(member, 'manage school menus')
    if not isinstance(fields, dict):
        raise ValidationError('Menu changes must be an object')
    unknown = set(fields) - {'title', 'category'}
    if unknown:
        raise ValidationError(f'Cannot update field(s): {", ".join(sorted(unknown))}')

    if 'title' in fields:
        menu.title = _clean_menu_title(fields['title'])
    if 'category' in fields:
        menu.category = sanitize_name(fields['category'], MAX_LENGTHS['category'], default=None)
    db.session.commit()
    return menu


def delete_school_menu(menu, member):
    _check_family_member(menu.family, member)
    require_privileged(member, 'manage school menus')
    db.session.delete(menu)
    db.session.commit()


def serialize_school_menu(menu):
    return {
        'id': menu.id,
        'family_id': menu.family_id,
        'date': menu.date.isoformat(),
        'meal_type': menu.meal_type,
        'title': menu.title,
        'category': menu.category,
    }
