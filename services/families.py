"""
Family Service

Families, their members and their diet profile.
"""

import logging

from constants import VALID_ROLES, VALID_LANGUAGES, PRIVILEGED_ROLES, DIET_FLAGS, MAX_LENGTHS
from models import db, Family, DietProfile, FamilyMember, InventoryItem
from utils.errors import ValidationError, PermissionDeniedError, NotFoundError
from utils.sanitizer import sanitize_name

logger = logging.getLogger(__name__)

PROFILE_FLAGS = DIET_FLAGS + ('pescatarian',)


def is_privileged(member):
    return member is not None and member.role in PRIVILEGED_ROLES


def require_privileged(member, action='do this'):
    if not is_privileged(member):
        raise PermissionDeniedError(f'Only an admin or parent can {action}')


def get_family(family_id):
    family = db.session.get(Family, family_id) if family_id is not None else None
    if family is None:
        raise NotFoundError('Family not found')
    return family


def get_member_in_family(family_id, member_id):
    """The member, provided they belong to the family; 403 otherwise."""
    member = db.session.get(FamilyMember, member_id) if member_id is not None else None
    if member is None or member.family_id != family_id:
        raise PermissionDeniedError('Not a member of this family')
    return member


def _clean_role(role):
    role = (role or 'MEMBER').upper()
    if role not in VALID_ROLES:
        raise ValidationError(f'Invalid role: {role}')
    return role


def create_family(name, creator_name, language='fr', diet=None):
    """
    Create a family with its diet profile and an ADMIN member.

    Returns (family, admin_member).
    """
    name = sanitize_name(name, MAX_LENGTHS['family_name'])
    creator_name = sanitize_name(creator_name, MAX_LENGTHS['member_name'])
    if not name:
        raise ValidationError('Family name is required')
    if not creator_name:
        raise ValidationError('Creator name is required')
    language = (language or 'fr').lower()
    if language not in VALID_LANGUAGES:
        raise ValidationError(f'Unsupported language: {language}')

    family = Family(name=name, language=language)
    family.diet_profile = DietProfile(allergies=[], favorite_ratio=0.6, max_novelties=2)
    admin = FamilyMember(name=creator_name, role='ADMIN', portion_factor=1.0, can_view_audit_log=True)
    family.members.append(admin)
    db.session.add(family)
    db.session.flush()

    if diet:
        _apply_diet(family.diet_profile, diet)

    db.session.commit()
    logger.info('Created family %s (%r)', family.id, family.name)
    return family, admin


def add_member(family, name, role='MEMBER', age=None, portion_factor=1.0, can_view_audit_log=True):
    name = sanitize_name(name, MAX_LENGTHS['member_name'])
    if not name:
        raise ValidationError('Member name is required')
    if age is not None:
        try:
            age = int(age)
        except (TypeError, ValueError):
            raise ValidationError('Age must be a number')
        if age < 0:
            raise ValidationError('Age must be zero or more')
    try:
        portion_factor = float(portion_factor)
    except (TypeError, ValueError):
        raise ValidationError('Portion factor must be a number')
    if portion_factor <= 0:
        raise ValidationError('Portion factor must be positive')

    member = FamilyMember(
        family_id=family.id,
        name=name,
        role=_clean_role(role),
        age=age,
        portion_factor=portion_factor,
        can_view_audit_log=bool(can_view_audit_log),
    )
    db.session.add(member)
    db.session.commit()
    return member


def _apply_diet(profile, fields):
    if not isinstance(fields, dict):
        raise ValidationError('Diet settings must be an object')
    for flag in PROFILE_FLAGS:
        if flag in fields:
            setattr(profile, flag, bool(fields[flag]))

    if 'allergies' in fields:
        allergies = fields['allergies'] or []
        if not isinstance(allergies, (list, tuple)):
            raise ValidationError('Allergies must be a list')
        profile.allergies = [a.strip() for a in allergies if isinstance(a, str) and a.strip()]

    if 'favorite_ratio' in fields:
        try:
            ratio = float(fields['favorite_ratio'])
        except (TypeError, ValueError):
            raise ValidationError('favorite_ratio must be a number')
        profile.favorite_ratio = min(1.0, max(0.0, ratio))

    if 'max_novelties' in fields:
        try:
            max_novelties = int(fields['max_novelties'])
        except (TypeError, ValueError):
            raise ValidationError('max_novelties must be an integer')
        if max_novelties < 0:
            raise ValidationError('max_novelties must be zero or more')
        profile.max_novelties = max_novelties


def update_diet_profile(family, fields):
    """Update the family's diet flags, allergies and planning preferences."""
    profile = family.diet_profile
    if profile is None:
        profile = family.diet_profile = DietProfile(allergies=[])
    _apply_diet(profile, fields)
    db.session.commit()
    return profile


def set_inventory_item(family, name, quantity, unit='piece', category='other'):
    """Create or update a stock line, matched by name (case-insensitive)."""
    name = sanitize_name(name, MAX_LENGTHS['ingredient_name'])
    if not name:
        raise ValidationError('Item name is required')
    try:
        quantity = float(quantity)
    except (TypeError, ValueError):
        raise ValidationError('Quantity must be a number')
    if quantity < 0:
        raise ValidationError('Quantity must be zero or more')

    item = next((i for i in family.inventory if i.name.lower() == name.lower()), None)
    if item is None:
        item = InventoryItem(family_id=family.id, name=name)
        db.session.add(item)
    item.quantity = quantity
    item.unit = unit or 'piece'
    item.category = category or 'other'
    db.session.commit()
    return item


def serialize_member(member):
    return {
        'id': member.id,
        'name': member.name,
        'role': member.role,
        'age': member.age,
        'portion_factor': member.portion_factor,
        'can_view_audit_log': bool(member.can_view_audit_log),
    }


def serialize_family(family):
    profile = family.diet_profile
    return {
        'id': family.id,
        'name': family.name,
        'language': family.language,
        'default_template_id': family.default_template_id,
        'members': [serialize_member(m) for m in family.members],
        'diet_profile': {
            **{flag: bool(getattr(profile, flag)) for flag in PROFILE_FLAGS},
            'allergies': profile.allergies or [],
            'favorite_ratio': profile.favorite_ratio,
            'max_novelties': profile.max_novelties,
        } if profile else None,
        'inventory': [
            {'id': i.id, 'name': i.name, 'quantity': i.quantity, 'unit': i.unit, 'category': i.category}
            for i in family.inventory
        ],
    }
