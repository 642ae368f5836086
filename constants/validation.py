"""
Validation Constants

Contains whitelist values for validating user input and ensuring data integrity.
"""

from .planning import DAYS_OF_WEEK, MEAL_TYPES, PLAN_STATUSES

VALID_DAYS = set(DAYS_OF_WEEK)
VALID_MEAL_TYPES = set(MEAL_TYPES)
VALID_PLAN_STATUSES = set(PLAN_STATUSES)

# Member roles
VALID_ROLES = {'ADMIN', 'PARENT', 'MEMBER', 'CHILD'}

# Roles allowed to edit plans, lock meals, moderate comments and work past the cutoff
PRIVILEGED_ROLES = {'ADMIN', 'PARENT'}

VALID_LANGUAGES = {'fr', 'en', 'nl'}

# Audit trail change types
VALID_CHANGE_TYPES = {
    'PLAN_CREATED', 'PLAN_STATUS_CHANGED',
    'MEAL_ADDED', 'MEAL_REMOVED', 'RECIPE_CHANGED', 'PORTIONS_CHANGED',
    'MEAL_LOCKED', 'MEAL_UNLOCKED',
    'COMPONENT_ADDED', 'COMPONENT_REMOVED', 'COMPONENT_CHANGED',
    'COMMENT_ADDED', 'COMMENT_EDITED', 'COMMENT_DELETED',
    'VOTE_ADDED', 'VOTE_CHANGED',
    'TEMPLATE_SWITCHED', 'CUTOFF_CHANGED', 'ATTENDANCE_CHANGED',
}

# Maximum field lengths
MAX_LENGTHS = {
    'family_name': 100,
    'member_name': 100,
    'recipe_title': 200,
    'ingredient_name': 200,
    'category': 50,
    'comment': 2000,
    'skip_reason': 200,
    'guest_note': 200,
    'template_name': 100,
    'template_description': 500,
    'school_menu_title': 200,
}
