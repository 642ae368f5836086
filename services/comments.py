"""
Meal Comment Service

Family members discuss planned meals. Comments are plain text, escaped
before storage, and every change is recorded in the plan's audit log.
"""

from flask import current_app

from models import db, MealComment
from utils.errors import ValidationError, PermissionDeniedError, NotFoundError
from utils.sanitizer import sanitize_text
from .audit import log_change
from .families import is_privileged
from .plans import plan_is_after_cutoff

COMMENT_MAX_LENGTH = 2000


def _clean_content(content):
    content = (content or '').strip() if isinstance(content, str) else ''
    if not content:
        raise ValidationError('Comment cannot be empty')
    max_length = current_app.config.get('COMMENT_MAX_LENGTH', COMMENT_MAX_LENGTH)
    if len(content) > max_length:
        raise ValidationError(f'Comment cannot exceed {max_length} characters')
    return sanitize_text(content)


def _check_member(meal, member):
    if member is None or member.family_id != meal.weekly_plan.family_id:
        raise PermissionDeniedError('Not a member of this family')


def _check_cutoff(meal, member):
    plan = meal.weekly_plan
    if plan_is_after_cutoff(plan) and not plan.allow_comments_after_cutoff and not is_privileged(member):
        raise PermissionDeniedError('Comments are closed after the cutoff')


def get_comment(meal, comment_id):
    comment = db.session.get(MealComment, comment_id)
    if comment is None or comment.meal_id != meal.id:
        raise NotFoundError('Comment not found')
    return comment


def add_comment(meal, member, content):
    _check_member(meal, member)
    _check_cutoff(meal, member)
    comment = MealComment(meal_id=meal.id, member_id=member.id, content=_clean_content(content))
    db.session.add(comment)
    log_change(meal.weekly_plan_id, 'COMMENT_ADDED', member=member, meal_id=meal.id,
               day=meal.day_of_week, meal_type=meal.meal_type)
    db.session.commit()
    return comment


def edit_comment(comment, member, content):
    """Authors can edit their own comments only."""
    meal = comment.meal
    _check_member(meal, member)
    if comment.member_id != member.id:
        raise PermissionDeniedError('You can only edit your own comments')
    _check_cutoff(meal, member)

    old_content = comment.content
    comment.content = _clean_content(content)
    comment.is_edited = True
    log_change(meal.weekly_plan_id, 'COMMENT_EDITED', member=member, meal_id=meal.id,
               old_value={'content': old_content}, new_value={'content': comment.content},
               day=meal.day_of_week, meal_type=meal.meal_type)
    db.session.commit()
    return comment


def delete_comment(comment, member):
    """Authors delete their own comments; an admin or parent can delete any."""
    meal = comment.meal
    _check_member(meal, member)
    if comment.member_id != member.id and not is_privileged(member):
        raise PermissionDeniedError('You can only delete your own comments')

    log_change(meal.weekly_plan_id, 'COMMENT_DELETED', member=member, meal_id=meal.id,
               old_value={'content': comment.content, 'author_id': comment.member_id},
               day=meal.day_of_week, meal_type=meal.meal_type)
    db.session.delete(comment)
    db.session.commit()


def list_comments(meal):
    return (MealComment.query
            .filter_by(meal_id=meal.id)
            .order_by(MealComment.created_at.desc(), MealComment.id.desc())
            .all())


def serialize_comment(comment):
    return {
        'id': comment.id,
        'meal_id': comment.meal_id,
        'member': {'id': comment.member.id, 'name': comment.member.name} if comment.member else None,
        'content': comment.content,
        'is_edited': bool(comment.is_edited),
        'created_at': comment.created_at.isoformat() if comment.created_at else None,
        'updated_at': comment.updated_at.isoformat() if comment.updated_at else None,
    }
