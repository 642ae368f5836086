"""
Tests for schedule templates and school menus.
"""

from datetime import timedelta

import pytest

from models import db, MealScheduleTemplate, SchoolMenu
from services import (
    create_family, generate_weekly_plan, switch_template,
    list_templates, create_template, update_template, delete_template, set_default_template,
    list_school_menus, create_school_menu, update_school_menu, delete_school_menu,
)
from services.schedules import clean_schedule, get_family_template, get_school_menu
from utils.errors import ValidationError, PermissionDeniedError, NotFoundError

from conftest import WEEK_START

DINNERS = [{'day_of_week': 'MONDAY', 'meal_types': ['DINNER']}, {'day_of_week': 'TUESDAY', 'meal_types': ['DINNER']}]


def system_template():
    return MealScheduleTemplate.query.filter_by(is_system=True).first()


class TestCleanSchedule:

    def test_normalised(self):
        schedule = [
            {'day_of_week': 'friday', 'meal_types': ['dinner', 'LUNCH']},
            {'day_of_week': 'MONDAY', 'meal_types': ['DINNER']},
            {'day_of_week': 'FRIDAY', 'meal_types': ['LUNCH']},
        ]
        assert clean_schedule(schedule) == [
            {'day_of_week': 'MONDAY', 'meal_types': ['DINNER']},
            {'day_of_week': 'FRIDAY', 'meal_types': ['LUNCH', 'DINNER']},
        ]

    @pytest.mark.parametrize('schedule', [
        None,
        [],
        'MONDAY',
        ['MONDAY'],
        [{'day_of_week': 'MONDAY', 'meal_types': []}],
        [{'day_of_week': 'MONDAY'}],
        [{'day_of_week': 'FUNDAY', 'meal_types': ['LUNCH']}],
        [{'day_of_week': 'MONDAY', 'meal_types': ['BRUNCH']}],
    ])
    def test_invalid(self, schedule):
        with pytest.raises(ValidationError):
            clean_schedule(schedule)


class TestTemplates:

    def test_create(self, household):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS,
                                   description='Weeknights only')
        assert template.family_id == household.family.id
        assert not template.is_system
        assert template.schedule == DINNERS
        assert template.description == 'Weeknights only'

    def test_only_privileged_create(self, household):
        with pytest.raises(PermissionDeniedError):
            create_template(household.family, household.member, 'Dinners', DINNERS)

    def test_name_required_and_unique(self, household):
        with pytest.raises(ValidationError):
            create_template(household.family, household.admin, '  ', DINNERS)
        create_template(household.family, household.admin, 'Dinners', DINNERS)
        with pytest.raises(ValidationError):
            create_template(household.family, household.admin, 'Dinners', DINNERS)

    def test_same_name_in_another_family(self, household):
        create_template(household.family, household.admin, 'Dinners', DINNERS)
        other, other_admin = create_family('Martin', 'Zoé')
        create_template(other, other_admin, 'Dinners', DINNERS)

    def test_list_system_first(self, household):
        create_template(household.family, household.admin, 'Zen week', DINNERS)
        create_template(household.family, household.admin, 'Busy week', DINNERS)
        other, other_admin = create_family('Martin', 'Zoé')
        create_template(other, other_admin, 'Theirs', DINNERS)
        names = [t.name for t in list_templates(household.family)]
        assert names == ['Standard Work Week', 'Busy week', 'Zen week']

    def test_update(self, household):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        update_template(template, household.family, household.admin, name='Evenings',
                        schedule=[{'day_of_week': 'SUNDAY', 'meal_types': ['LUNCH']}])
        assert template.name == 'Evenings'
        assert template.schedule == [{'day_of_week': 'SUNDAY', 'meal_types': ['LUNCH']}]
        assert template.description == ''

    def test_rename_keeps_own_name(self, household):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        update_template(template, household.family, household.admin, name='Dinners')
        other = create_template(household.family, household.admin, 'Lunches', DINNERS)
        with pytest.raises(ValidationError):
            update_template(other, household.family, household.admin, name='Dinners')

    def test_system_template_read_only(self, household):
        with pytest.raises(PermissionDeniedError):
            update_template(system_template(), household.family, household.admin, name='Mine now')
        with pytest.raises(PermissionDeniedError):
            delete_template(system_template(), household.family, household.admin)

    def test_other_family_template(self, household):
        other, other_admin = create_family('Martin', 'Zoé')
        theirs = create_template(other, other_admin, 'Theirs', DINNERS)
        with pytest.raises(NotFoundError):
            get_family_template(household.family, theirs.id)
        with pytest.raises(PermissionDeniedError):
            update_template(theirs, household.family, household.admin, name='Ours')
        assert get_family_template(household.family, system_template().id).is_system

    def test_delete(self, household, recipes):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        plan, _ = generate_weekly_plan(household.family, WEEK_START, template=template, member=household.admin)
        template_id = template.id
        delete_template(template, household.family, household.admin)
        assert db.session.get(MealScheduleTemplate, template_id) is None
        assert plan.template_id is None
        assert len(plan.meals) == 2

    def test_default_cannot_be_deleted(self, household):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        set_default_template(household.family, household.admin, template)
        with pytest.raises(ValidationError):
            delete_template(template, household.family, household.admin)


class TestDefaultTemplate:

    def test_new_plans_use_default(self, household, recipes):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        set_default_template(household.family, household.admin, template)
        assert household.family.default_template_id == template.id

        plan, _ = generate_weekly_plan(household.family, WEEK_START, member=household.admin)
        assert plan.template_id == template.id
        assert sorted((m.day_of_week, m.meal_type) for m in plan.meals) == [
            ('MONDAY', 'DINNER'), ('TUESDAY', 'DINNER'),
        ]

    def test_clear_default(self, household, recipes):
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        set_default_template(household.family, household.admin, template)
        set_default_template(household.family, household.admin, None)
        assert household.family.default_template_id is None
        plan, _ = generate_weekly_plan(household.family, WEEK_START, member=household.admin)
        assert plan.template.name == 'Standard Work Week'

    def test_only_privileged(self, household):
        with pytest.raises(PermissionDeniedError):
            set_default_template(household.family, household.child, system_template())

    def test_other_family_template_refused(self, household):
        other, other_admin = create_family('Martin', 'Zoé')
        theirs = create_template(other, other_admin, 'Theirs', DINNERS)
        with pytest.raises(PermissionDeniedError):
            set_default_template(household.family, household.admin, theirs)

    def test_switch_to_custom_template(self, household, recipes):
        plan, _ = generate_weekly_plan(household.family, WEEK_START, member=household.admin)
        template = create_template(household.family, household.admin, 'Dinners', DINNERS)
        switch_template(plan, household.admin, template)
        assert len(plan.meals) == 2


class TestSchoolMenus:

    def test_create_defaults_to_lunch(self, household):
        menu = create_school_menu(household.family, household.admin, '2026-10-20', 'Fish sticks',
                                  category='fish')
        assert menu.meal_type == 'LUNCH'
        assert menu.date == WEEK_START + timedelta(days=1)
        assert menu.category == 'fish'
        assert household.family.school_menus == [menu]

    @pytest.mark.parametrize('kwargs', [
        {'menu_date': 'tomorrow', 'title': 'Soup'},
        {'menu_date': '2026-10-20', 'title': ''},
        {'menu_date': '2026-10-20', 'title': 'Soup', 'meal_type': 'BRUNCH'},
    ])
    def test_invalid(self, household, kwargs):
        with pytest.raises(ValidationError):
            create_school_menu(household.family, household.admin, **kwargs)

    def test_one_menu_per_slot(self, household):
        create_school_menu(household.family, household.admin, '2026-10-20', 'Fish sticks')
        with pytest.raises(ValidationError):
            create_school_menu(household.family, household.admin, '2026-10-20', 'Pasta')
        create_school_menu(household.family, household.admin, '2026-10-20', 'Apple', meal_type='SNACK')

    def test_only_privileged(self, household):
        with pytest.raises(PermissionDeniedError):
            create_school_menu(household.family, household.member, '2026-10-20', 'Fish sticks')

    def test_list_by_date_range(self, household):
        for day, title in ((3, 'Pasta'), (1, 'Fish sticks'), (8, 'Pizza')):
            create_school_menu(household.family, household.admin, WEEK_START + timedelta(days=day), title)
        assert [m.title for m in list_school_menus(household.family)] == ['Fish sticks', 'Pasta', 'Pizza']
        week = list_school_menus(household.family, WEEK_START.isoformat(), '2026-10-25')
        assert [m.title for m in week] == ['Fish sticks', 'Pasta']
        with pytest.raises(ValidationError):
            list_school_menus(household.family, 'monday')

    def test_update(self, household):
        menu = create_school_menu(household.family, household.admin, '2026-10-20', 'Fish sticks')
        update_school_menu(menu, household.admin, {'title': '<b>Fish</b>', 'category': 'fish'})
        assert menu.title == '&lt;b&gt;Fish&lt;/b&gt;'
        assert menu.category == 'fish'
        with pytest.raises(ValidationError):
            update_school_menu(menu, household.admin, {'date': '2026-10-21'})
        with pytest.raises(ValidationError):
            update_school_menu(menu, household.admin, {'title': ''})

    def test_delete(self, household):
        menu = create_school_menu(household.family, household.admin, '2026-10-20', 'Fish sticks')
        menu_id = menu.id
        with pytest.raises(PermissionDeniedError):
            delete_school_menu(menu, household.child)
        delete_school_menu(menu, household.admin)
        assert db.session.get(SchoolMenu, menu_id) is None

    def test_other_family_menu_not_found(self, household):
        other, other_admin = create_family('Martin', 'Zoé')
        theirs = create_school_menu(other, other_admin, '2026-10-20', 'Soup')
        with pytest.raises(NotFoundError):
            get_school_menu(household.family, theirs.id)

    def test_lunch_menu_becomes_school_meal(self, household, recipes):
        create_school_menu(household.family, household.admin, '2026-10-20', 'Fish sticks', category='fish')
        plan, _ = generate_weekly_plan(household.family, WEEK_START, member=household.admin)
        tuesday_lunch = next(m for m in plan.meals if m.day_of_week == 'TUESDAY' and m.meal_type == 'LUNCH')
        assert tuesday_lunch.is_school_meal
        assert tuesday_lunch.recipe_id is None
