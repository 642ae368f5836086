"""
Audit Models

Contains the PlanChangeLog audit trail and the MealComment model.
"""

from .base import db, utcnow


class PlanChangeLog(db.Model):
    """Append-only record of a change made to a weekly plan.

    description is French (the default family language), with English and
    Dutch variants alongside.
    """
    id = db.Column(db.Integer, primary_key=True)
    weekly_plan_id = db.Column(db.Integer, db.ForeignKey('weekly_plan.id', ondelete='CASCADE'),
                               nullable=False, index=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=True, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('family_member.id', ondelete='SET NULL'),
                          nullable=True, index=True)
    change_type = db.Column(db.String(30), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    description_en = db.Column(db.Text, nullable=True)
    description_nl = db.Column(db.Text, nullable=True)
    old_value = db.Column(db.JSON, nullable=True)
    new_value = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    member = db.relationship('FamilyMember')


class MealComment(db.Model):
    """Free-text comment a family member leaves on a meal."""
    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('family_member.id', ondelete='CASCADE'),
                          nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    is_edited = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    member = db.relationship('FamilyMember')
    meal = db.relationship('Meal', backref=db.backref('comments', cascade='all, delete-orphan'))
