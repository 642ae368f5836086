"""
Family Models

Contains the Family, DietProfile, FamilyMember and InventoryItem models.
A family owns its diet constraints, its members and the stock it keeps at home.
"""

from .base import db, utcnow


class Family(db.Model):
    """A household that plans meals together."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    language = db.Column(db.String(5), default='fr')  # 'fr', 'en' or 'nl'
    default_template_id = db.Column(
        db.Integer,
        db.ForeignKey('meal_schedule_template.id', ondelete='SET NULL', use_alter=True),
        nullable=True,
    )
    created_at = db.Column(db.DateTime, default=utcnow)

    diet_profile = db.relationship('DietProfile', backref='family', uselist=False, cascade='all, delete-orphan')
    members = db.relationship('FamilyMember', backref='family', lazy=True, cascade='all, delete-orphan',
                              order_by='FamilyMember.id')
    inventory = db.relationship('InventoryItem', backref='family', lazy=True, cascade='all, delete-orphan')
    school_menus = db.relationship('SchoolMenu', backref='family', lazy=True, cascade='all, delete-orphan',
                                   order_by='SchoolMenu.date')
    default_template = db.relationship('MealScheduleTemplate', foreign_keys=[default_template_id], post_update=True)


class DietProfile(db.Model):
    """Per-family dietary constraints and planning preferences."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, unique=True)

    # Hard filters - a recipe must carry the matching flag when these are on
    vegetarian = db.Column(db.Boolean, default=False)
    vegan = db.Column(db.Boolean, default=False)
    pescatarian = db.Column(db.Boolean, default=False)
    gluten_free = db.Column(db.Boolean, default=False)
    lactose_free = db.Column(db.Boolean, default=False)
    kosher = db.Column(db.Boolean, default=False)
    halal = db.Column(db.Boolean, default=False)
    allergies = db.Column(db.JSON, default=list)

    # Target fraction of meals drawn from favorites
    favorite_ratio = db.Column(db.Float, default=0.6)
    # Cap on novelty recipes per week
    max_novelties = db.Column(db.Integer, default=2)


class FamilyMember(db.Model):
    """Person belonging to a family. The role drives what they may edit."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(10), default='MEMBER')  # ADMIN, PARENT, MEMBER, CHILD
    age = db.Column(db.Integer, nullable=True)
    portion_factor = db.Column(db.Float, default=1.0)
    can_view_audit_log = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)


class InventoryItem(db.Model):
    """Stock on hand, deducted from generated shopping lists."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(20), nullable=False, default='piece')
    category = db.Column(db.String(50), default='other')
