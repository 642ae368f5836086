"""
Constants Package

Unit families, ingredient/diet constants, planning constants and validation whitelists.
"""

from .units import *  # noqa: F401,F403
from .ingredients import *  # noqa: F401,F403
from .planning import *  # noqa: F401,F403
from .validation import *  # noqa: F401,F403
