"""
Planning Constants

Days, meal types, plan statuses and the default weekly schedule.
"""

DAYS_OF_WEEK = ('MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY')

MEAL_TYPES = ('BREAKFAST', 'LUNCH', 'DINNER', 'SNACK')

PLAN_STATUSES = ('DRAFT', 'IN_VALIDATION', 'VALIDATED', 'LOCKED')

# Forward-only transitions; going back to DRAFT is the explicit unlock action
STATUS_TRANSITIONS = {
    'DRAFT': {'IN_VALIDATION', 'VALIDATED'},
    'IN_VALIDATION': {'VALIDATED'},
    'VALIDATED': {'LOCKED'},
    'LOCKED': set(),
}

# Statuses a privileged member may unlock back to DRAFT
UNLOCKABLE_STATUSES = {'VALIDATED', 'LOCKED'}

# Lunch and dinner every day
DEFAULT_SCHEDULE = [
    {'day_of_week': day, 'meal_types': ['LUNCH', 'DINNER']}
    for day in DAYS_OF_WEEK
]

# System template used when neither the request nor the family picks one
DEFAULT_TEMPLATE_NAME = 'Standard Work Week'

# Slot sources reported by the generator
SOURCE_FAVORITE = 'favorite'
SOURCE_NOVELTY = 'novelty'
SOURCE_OTHER = 'other'
SOURCE_FALLBACK = 'fallback'
SOURCE_COMPONENTS = 'components'
SOURCE_SCHOOL = 'school'
