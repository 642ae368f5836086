"""
Recipe Models

Contains the Recipe and Ingredient models for the recipe catalog, and the
FoodComponent model used to compose meals from building blocks.
"""

from .base import db, utcnow


class Recipe(db.Model):
    """Recipe with dietary flags and planning flags (favorite / novelty)."""
    id = db.Column(db.Integer, primary_key=True)
    # NULL family means a global recipe visible to every family
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='SET NULL'), nullable=True, index=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(50), nullable=True, index=True)
    servings = db.Column(db.Integer, default=4)

    vegetarian = db.Column(db.Boolean, default=False)
    vegan = db.Column(db.Boolean, default=False)
    gluten_free = db.Column(db.Boolean, default=False)
    lactose_free = db.Column(db.Boolean, default=False)
    kosher = db.Column(db.Boolean, default=False)
    halal = db.Column(db.Boolean, default=False)

    is_favorite = db.Column(db.Boolean, default=False, index=True)
    is_novelty = db.Column(db.Boolean, default=False, index=True)
    is_component_based = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    ingredients = db.relationship('Ingredient', backref='recipe', lazy=True, cascade='all, delete-orphan',
                                  order_by='Ingredient.position')


class Ingredient(db.Model):
    """One ingredient line of a recipe, quantity given for recipe.servings."""
    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(50), nullable=False, default='other')
    contains_gluten = db.Column(db.Boolean, default=False)
    contains_lactose = db.Column(db.Boolean, default=False)
    allergens = db.Column(db.JSON, default=list)
    alternatives = db.Column(db.JSON, default=list)
    position = db.Column(db.Integer, default=0)


class FoodComponent(db.Model):
    """Building block (protein, vegetable, carb...) for component-based meals.

    default_quantity is expressed per person.
    """
    id = db.Column(db.Integer, primary_key=True)
    # NULL family means a system component
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=True, index=True)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(20), default='OTHER', index=True)
    default_quantity = db.Column(db.Float, default=1.0)
    unit = db.Column(db.String(20), nullable=False)
    shopping_category = db.Column(db.String(50), default='produce')

    vegetarian = db.Column(db.Boolean, default=True)
    vegan = db.Column(db.Boolean, default=False)
    gluten_free = db.Column(db.Boolean, default=True)
    lactose_free = db.Column(db.Boolean, default=True)
    kosher = db.Column(db.Boolean, default=False)
    halal = db.Column(db.Boolean, default=True)
    allergens = db.Column(db.JSON, default=list)
