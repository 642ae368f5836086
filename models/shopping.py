"""
Shopping Models

Contains the ShoppingList and ShoppingItem models. A shopping list is a
derived artifact owned by one weekly plan and rebuilt from scratch whenever
the plan's meals change.
"""

from .base import db, utcnow


class ShoppingList(db.Model):
    """Aggregated groceries for a weekly plan."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    weekly_plan_id = db.Column(db.Integer, db.ForeignKey('weekly_plan.id', ondelete='CASCADE'),
                               nullable=False, unique=True)
    generated_at = db.Column(db.DateTime, default=utcnow)
    items = db.relationship('ShoppingItem', backref='shopping_list', lazy=True, cascade='all, delete-orphan',
                            order_by='ShoppingItem.position')
    weekly_plan = db.relationship('WeeklyPlan', backref=db.backref('shopping_list', uselist=False,
                                                                   cascade='all, delete-orphan'))


class ShoppingItem(db.Model):
    """Shopping list line with aggregated quantity and stock information."""
    id = db.Column(db.Integer, primary_key=True)
    shopping_list_id = db.Column(db.Integer, db.ForeignKey('shopping_list.id', ondelete='CASCADE'),
                                 nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(50), default='other')
    alternatives = db.Column(db.JSON, default=list)
    recipe_names = db.Column(db.JSON, default=list)  # recipes that need this item
    checked = db.Column(db.Boolean, default=False)
    in_stock = db.Column(db.Boolean, default=False)
    position = db.Column(db.Integer, default=0)
