"""
Pytest configuration and shared fixtures.

Every test that touches the database gets a fresh app with an in-memory
SQLite database, the system schedule template and an empty schema.
"""

from datetime import date
from types import SimpleNamespace

import pytest

from app import create_app, init_db
from models import db
from services import create_family, add_member, create_recipe


# Monday of ISO week 43, 2026
WEEK_START = date(2026, 10, 19)


@pytest.fixture
def app():
    """
    Flask app built with TestingConfig, inside an app context.

    Usage in tests:
        def test_something(app):
            family, admin = create_family(...)
    """
    app = create_app('testing')
    init_db(app)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def household(app):
    """A family with an admin, a plain member and a child."""
    family, admin = create_family('Dupont', 'Alice')
    member = add_member(family, 'Bob', role='MEMBER')
    child = add_member(family, 'Léo', role='CHILD', age=8)
    return SimpleNamespace(family=family, admin=admin, member=member, child=child)


@pytest.fixture
def recipes(household):
    """Two favorites, one novelty and one everyday recipe for the family."""
    family = household.family
    bolognese = create_recipe(
        'Spaghetti bolognese', category='pasta', servings=4, family=family, is_favorite=True,
        ingredients=[
            {'name': 'Spaghetti', 'quantity': 400, 'unit': 'g', 'category': 'pantry', 'contains_gluten': True},
            {'name': 'Minced beef', 'quantity': 500, 'unit': 'g', 'category': 'meat'},
            {'name': 'Tomatoes', 'quantity': 430, 'unit': 'g', 'category': 'produce'},
        ],
    )
    salmon = create_recipe(
        'Grilled salmon', category='fish', servings=2, family=family, is_favorite=True,
        flags={'gluten_free': True, 'lactose_free': True},
        ingredients=[
            {'name': 'Salmon fillet', 'quantity': 2, 'unit': 'pieces', 'category': 'fish', 'allergens': ['fish']},
            {'name': 'Lemon', 'quantity': 1, 'unit': 'piece', 'category': 'produce'},
        ],
    )
    curry = create_recipe(
        'Veggie curry', category='curry', servings=4, family=family, is_novelty=True,
        flags={'vegetarian': True, 'vegan': True, 'gluten_free': True, 'lactose_free': True},
        ingredients=[
            {'name': 'Chickpeas', 'quantity': 800, 'unit': 'g', 'category': 'pantry'},
            {'name': 'Coconut milk', 'quantity': 0.4, 'unit': 'l', 'category': 'pantry'},
        ],
    )
    quiche = create_recipe(
        'Quiche lorraine', category='tart', servings=6, family=family,
        ingredients=[
            {'name': 'Eggs', 'quantity': 4, 'unit': 'pieces', 'category': 'dairy'},
            {'name': 'Cream', 'quantity': 200, 'unit': 'ml', 'category': 'dairy', 'contains_lactose': True,
             'alternatives': ['Soy cream']},
        ],
    )
    return SimpleNamespace(bolognese=bolognese, salmon=salmon, curry=curry, quiche=quiche)


def auth(member):
    """Request headers naming the acting member."""
    return {'X-Member-Id': str(member.id)}
