"""
Meal Plan Models

Contains the WeeklyPlan and Meal models for weekly meal planning, plus the
schedule templates, school menus, guests and meal components they rely on.
"""

from .base import db, utcnow


class MealScheduleTemplate(db.Model):
    """Which meal types get planned on which days.

    schedule is a list of {"day_of_week": "MONDAY", "meal_types": ["LUNCH", "DINNER"]}.
    """
    id = db.Column(db.Integer, primary_key=True)
    # NULL family means a system template available to everyone
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=True, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), default='')
    is_system = db.Column(db.Boolean, default=False)
    schedule = db.Column(db.JSON, nullable=False)


class SchoolMenu(db.Model):
    """Meal the children eat at school; replaces the home lunch that day."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    meal_type = db.Column(db.String(10), default='LUNCH')
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), nullable=True)


class WeeklyPlan(db.Model):
    """One family's plan for one week, moving DRAFT -> IN_VALIDATION -> VALIDATED -> LOCKED."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    week_start_date = db.Column(db.Date, nullable=False)
    week_number = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(15), default='DRAFT', index=True)
    cutoff_date = db.Column(db.Date, nullable=True)
    cutoff_time = db.Column(db.String(5), nullable=True)  # 'HH:MM'
    allow_comments_after_cutoff = db.Column(db.Boolean, default=True)
    template_id = db.Column(db.Integer, db.ForeignKey('meal_schedule_template.id', ondelete='SET NULL'),
                            nullable=True)
    validated_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    family = db.relationship('Family', backref=db.backref('weekly_plans', cascade='all, delete-orphan'))
    template = db.relationship('MealScheduleTemplate')
    meals = db.relationship('Meal', backref='weekly_plan', lazy=True, cascade='all, delete-orphan')


class Meal(db.Model):
    """A single (day, meal type) slot of a weekly plan."""
    __table_args__ = (
        db.UniqueConstraint('weekly_plan_id', 'day_of_week', 'meal_type', name='uq_meal_plan_slot'),
    )

    id = db.Column(db.Integer, primary_key=True)
    weekly_plan_id = db.Column(db.Integer, db.ForeignKey('weekly_plan.id', ondelete='CASCADE'),
                               nullable=False, index=True)
    day_of_week = db.Column(db.String(10), nullable=False)   # MONDAY..SUNDAY
    meal_type = db.Column(db.String(10), nullable=False)     # BREAKFAST, LUNCH, DINNER, SNACK
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='SET NULL'), nullable=True, index=True)
    portions = db.Column(db.Integer, nullable=False, default=4)
    locked = db.Column(db.Boolean, default=False)
    is_school_meal = db.Column(db.Boolean, default=False)
    is_external = db.Column(db.Boolean, default=False)
    external_note = db.Column(db.String(200), nullable=True)
    is_skipped = db.Column(db.Boolean, default=False)
    skip_reason = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    recipe = db.relationship('Recipe')
    guests = db.relationship('MealGuest', backref='meal', lazy=True, cascade='all, delete-orphan')
    components = db.relationship('MealComponent', backref='meal', lazy=True, cascade='all, delete-orphan',
                                 order_by='MealComponent.position')


class MealGuest(db.Model):
    """Extra people joining a meal; children count for a partial portion."""
    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    adults = db.Column(db.Integer, default=0)
    children = db.Column(db.Integer, default=0)
    note = db.Column(db.String(200), nullable=True)


class MealComponent(db.Model):
    """One food component of a component-based meal (quantity per person)."""
    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    component_id = db.Column(db.Integer, db.ForeignKey('food_component.id', ondelete='RESTRICT'),
                             nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    position = db.Column(db.Integer, default=0)

    component = db.relationship('FoodComponent')
