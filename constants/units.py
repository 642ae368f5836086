"""
Unit Constants

Unit families used to round shopping list quantities to amounts that can
actually be bought. Units are matched lowercase after stripping whitespace
and a trailing period.
"""

# Weight
KILOGRAM_UNITS = {'kg', 'kilo', 'kilos', 'kilogram', 'kilograms', 'kilogramme', 'kilogrammes'}
GRAM_UNITS = {'g', 'gr', 'gram', 'grams', 'gramme', 'grammes'}

# Volume
LITER_UNITS = {'l', 'liter', 'liters', 'litre', 'litres'}
MILLILITER_UNITS = {'ml', 'milliliter', 'milliliters', 'millilitre', 'millilitres'}

# Discrete items - always bought whole
PIECE_UNITS = {
    'piece', 'pieces', 'pièce', 'pièces', 'pc', 'pcs',
    'unit', 'units', 'unité', 'unités', 'stuk', 'stuks',
    'ea', 'each',
}

# Rounding steps: (upper bound exclusive, step). The last bound is None.
KILOGRAM_STEP = 0.25
LITER_STEP = 0.25
GRAM_STEPS = ((50, 10), (200, 25), (None, 50))
MILLILITER_STEPS = ((100, 10), (None, 50))
DEFAULT_DECIMALS = 2
