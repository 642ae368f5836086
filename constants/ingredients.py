"""
Ingredient Constants

Shopping category labels, dietary substitution hints and the dietary flags
shared by recipes, food components and diet profiles.
"""

# Shopping categories as stored on ingredients -> label shown on the list
SHOPPING_CATEGORY_LABELS = {
    'produce': 'Produce',
    'meat': 'Meat',
    'fish': 'Fish',
    'dairy': 'Dairy',
    'bakery': 'Bakery',
    'pantry': 'Pantry',
    'frozen': 'Frozen',
    'spices': 'Spices',
    'beverages': 'Beverages',
    'other': 'Other',
}

# Hints prepended to a shopping item's alternatives
GLUTEN_FREE_HINT = 'Gluten-free version'
LACTOSE_FREE_HINT = 'Lactose-free version (plant milk, soy cream)'

# Flags a diet profile can require; recipes/components must carry the same flag
DIET_FLAGS = ('vegetarian', 'vegan', 'gluten_free', 'lactose_free', 'kosher', 'halal')

# Guest children eat a partial portion
CHILD_GUEST_FACTOR = 0.7

# Component categories used to assemble a component-based meal
COMPONENT_CATEGORIES = {'PROTEIN', 'VEGETABLE', 'CARB', 'FRUIT', 'SAUCE', 'CONDIMENT', 'SPICE', 'OTHER'}
