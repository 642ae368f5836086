"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db

from .family import Family, DietProfile, FamilyMember, InventoryItem
from .recipe import Recipe, Ingredient, FoodComponent
from .mealplan import MealScheduleTemplate, SchoolMenu, WeeklyPlan, Meal, MealGuest, MealComponent
from .shopping import ShoppingList, ShoppingItem
from .audit import PlanChangeLog, MealComment

__all__ = [
    'db',
    'Family',
    'DietProfile',
    'FamilyMember',
    'InventoryItem',
    'Recipe',
    'Ingredient',
    'FoodComponent',
    'MealScheduleTemplate',
    'SchoolMenu',
    'WeeklyPlan',
    'Meal',
    'MealGuest',
    'MealComponent',
    'ShoppingList',
    'ShoppingItem',
    'PlanChangeLog',
    'MealComment',
]
