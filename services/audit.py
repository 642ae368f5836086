"""
Audit Log Service

Append-only trail of changes made to weekly plans. Every entry carries a
French description (the default family language) plus English and Dutch
variants so the log can be shown in the family's language.
"""

import logging
from collections import defaultdict

from flask import current_app

from constants import VALID_CHANGE_TYPES
from models import db, PlanChangeLog
from utils.errors import ValidationError, PermissionDeniedError

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_LIMIT = 50
MAX_AUDIT_LIMIT = 100

# change_type -> (fr, en, nl); placeholders filled from the log_change keyword arguments
DESCRIPTIONS = {
    'PLAN_CREATED': (
        'Planning de la semaine {week} créé ({mode})',
        'Week {week} plan created ({mode})',
        'Weekplanning {week} aangemaakt ({mode})',
    ),
    'PLAN_STATUS_CHANGED': (
        'Statut changé de {old_status} à {new_status}',
        'Status changed from {old_status} to {new_status}',
        'Status gewijzigd van {old_status} naar {new_status}',
    ),
    'MEAL_ADDED': (
        'Repas ajouté : {day} {meal_type}',
        'Meal added: {day} {meal_type}',
        'Maaltijd toegevoegd: {day} {meal_type}',
    ),
    'MEAL_REMOVED': (
        'Repas retiré : {day} {meal_type} {reason}',
        'Meal removed: {day} {meal_type} {reason}',
        'Maaltijd verwijderd: {day} {meal_type} {reason}',
    ),
    'RECIPE_CHANGED': (
        'Recette changée de « {old_recipe} » à « {new_recipe} » ({day} {meal_type})',
        'Recipe changed from "{old_recipe}" to "{new_recipe}" ({day} {meal_type})',
        'Recept gewijzigd van "{old_recipe}" naar "{new_recipe}" ({day} {meal_type})',
    ),
    'PORTIONS_CHANGED': (
        'Portions changées de {old_portions} à {new_portions} ({day} {meal_type})',
        'Portions changed from {old_portions} to {new_portions} ({day} {meal_type})',
        'Porties gewijzigd van {old_portions} naar {new_portions} ({day} {meal_type})',
    ),
    'MEAL_LOCKED': (
        'Repas verrouillé ({day} {meal_type})',
        'Meal locked ({day} {meal_type})',
        'Maaltijd vergrendeld ({day} {meal_type})',
    ),
    'MEAL_UNLOCKED': (
        'Repas déverrouillé ({day} {meal_type})',
        'Meal unlocked ({day} {meal_type})',
        'Maaltijd ontgrendeld ({day} {meal_type})',
    ),
    'COMPONENT_ADDED': (
        'Composant ajouté : {component}',
        'Component added: {component}',
        'Component toegevoegd: {component}',
    ),
    'COMPONENT_REMOVED': (
        'Composant retiré : {component}',
        'Component removed: {component}',
        'Component verwijderd: {component}',
    ),
    'COMPONENT_CHANGED': (
        'Composant modifié : {component}',
        'Component changed: {component}',
        'Component gewijzigd: {component}',
    ),
    'COMMENT_ADDED': (
        'Commentaire ajouté ({day} {meal_type})',
        'Comment added ({day} {meal_type})',
        'Opmerking toegevoegd ({day} {meal_type})',
    ),
    'COMMENT_EDITED': (
        'Commentaire modifié ({day} {meal_type})',
        'Comment edited ({day} {meal_type})',
        'Opmerking bewerkt ({day} {meal_type})',
    ),
    'COMMENT_DELETED': (
        'Commentaire supprimé ({day} {meal_type})',
        'Comment deleted ({day} {meal_type})',
        'Opmerking verwijderd ({day} {meal_type})',
    ),
    # Voting is not part of the planner; kept so stored vote entries still render
    'VOTE_ADDED': (
        'Vote ajouté ({day} {meal_type})',
        'Vote added ({day} {meal_type})',
        'Stem toegevoegd ({day} {meal_type})',
    ),
    'VOTE_CHANGED': (
        'Vote modifié ({day} {meal_type})',
        'Vote changed ({day} {meal_type})',
        'Stem gewijzigd ({day} {meal_type})',
    ),
    'TEMPLATE_SWITCHED': (
        'Modèle changé pour « {template} »',
        'Template switched to "{template}"',
        'Sjabloon gewijzigd naar "{template}"',
    ),
    'CUTOFF_CHANGED': (
        'Date limite fixée au {cutoff}',
        'Cutoff set to {cutoff}',
        'Deadline ingesteld op {cutoff}',
    ),
    'ATTENDANCE_CHANGED': (
        'Présence modifiée ({day} {meal_type})',
        'Attendance changed ({day} {meal_type})',
        'Aanwezigheid gewijzigd ({day} {meal_type})',
    ),
}


def describe_change(change_type, **data):
    """Return the (fr, en, nl) descriptions of a change; missing values render as '-'."""
    if change_type not in DESCRIPTIONS:
        raise ValidationError(f'Unknown change type: {change_type}')
    values = defaultdict(lambda: '-', {k: ('-' if v is None else v) for k, v in data.items()})
    values.setdefault('reason', '')
    return tuple(' '.join(t.format_map(values).split()) for t in DESCRIPTIONS[change_type])


def log_change(weekly_plan_id, change_type, member=None, meal_id=None,
               old_value=None, new_value=None, **description_data):
    """
    Append an audit entry to the current session.

    The caller commits, so the entry lands in the same transaction as the
    change it records.
    """
    if change_type not in VALID_CHANGE_TYPES:
        raise ValidationError(f'Unknown change type: {change_type}')

    fr, en, nl = describe_change(change_type, **description_data)
    entry = PlanChangeLog(
        weekly_plan_id=weekly_plan_id,
        meal_id=meal_id,
        member_id=member.id if member is not None else None,
        change_type=change_type,
        description=fr,
        description_en=en,
        description_nl=nl,
        old_value=old_value,
        new_value=new_value,
    )
    db.session.add(entry)
    logger.debug('Audit %s on plan %s by member %s', change_type, weekly_plan_id,
                 member.id if member is not None else None)
    return entry


def serialize_change(entry, language='fr'):
    description = {
        'en': entry.description_en,
        'nl': entry.description_nl,
    }.get(language) or entry.description
    return {
        'id': entry.id,
        'change_type': entry.change_type,
        'description': description,
        'meal_id': entry.meal_id,
        'member': {'id': entry.member.id, 'name': entry.member.name} if entry.member else None,
        'old_value': entry.old_value,
        'new_value': entry.new_value,
        'created_at': entry.created_at.isoformat() if entry.created_at else None,
    }


def get_plan_changes(plan, member, change_type=None, limit=DEFAULT_AUDIT_LIMIT, offset=0):
    """
    Newest-first audit entries of a plan, paginated.

    The member must belong to the plan's family and be allowed to view the log.
    """
    if member is None or member.family_id != plan.family_id:
        raise PermissionDeniedError('Not a member of this family')
    if not member.can_view_audit_log:
        raise PermissionDeniedError('Not allowed to view the audit log')

    max_limit = current_app.config.get('AUDIT_LOG_MAX_LIMIT', MAX_AUDIT_LIMIT)
    try:
        limit = max(1, min(int(limit), max_limit))
        offset = max(0, int(offset))
    except (TypeError, ValueError):
        raise ValidationError('limit and offset must be integers')

    query = PlanChangeLog.query.filter_by(weekly_plan_id=plan.id)
    if change_type:
        if change_type not in VALID_CHANGE_TYPES:
            raise ValidationError(f'Unknown change type: {change_type}')
        query = query.filter_by(change_type=change_type)

    total = query.count()
    entries = (query.order_by(PlanChangeLog.created_at.desc(), PlanChangeLog.id.desc())
               .offset(offset).limit(limit).all())

    language = plan.family.language or 'fr'
    return {
        'changes': [serialize_change(e, language) for e in entries],
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'has_more': offset + len(entries) < total,
        },
    }
