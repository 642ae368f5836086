"""
Tests for meal comments.
"""

from datetime import date, timedelta

import pytest

from models import PlanChangeLog
from services import generate_weekly_plan, set_cutoff, create_family
from services.comments import add_comment, edit_comment, delete_comment, list_comments, get_comment
from utils.errors import ValidationError, PermissionDeniedError, NotFoundError

from conftest import WEEK_START


@pytest.fixture
def meal(household, recipes):
    plan, _ = generate_weekly_plan(household.family, WEEK_START, member=household.admin)
    return plan.meals[0]


def close_comments(meal, admin):
    set_cutoff(meal.weekly_plan, admin, date.today() - timedelta(days=1), allow_comments_after_cutoff=False)


class TestAddComment:

    def test_content_is_escaped(self, household, meal):
        comment = add_comment(meal, household.member, '  <b>More</b> cheese please  ')
        assert comment.content == '&lt;b&gt;More&lt;/b&gt; cheese please'
        assert comment.member_id == household.member.id
        assert not comment.is_edited

    @pytest.mark.parametrize('content', ['', '   ', None])
    def test_empty_rejected(self, household, meal, content):
        with pytest.raises(ValidationError):
            add_comment(meal, household.member, content)

    def test_length_limit(self, household, meal):
        add_comment(meal, household.member, 'x' * 2000)
        with pytest.raises(ValidationError):
            add_comment(meal, household.member, 'x' * 2001)

    def test_outsider_refused(self, meal):
        _, stranger = create_family('Martin', 'Zoé')
        with pytest.raises(PermissionDeniedError):
            add_comment(meal, stranger, 'Hello')

    def test_allowed_after_cutoff_by_default(self, household, meal):
        set_cutoff(meal.weekly_plan, household.admin, date.today() - timedelta(days=1))
        add_comment(meal, household.child, 'Can we have fries?')

    def test_closed_after_cutoff(self, household, meal):
        close_comments(meal, household.admin)
        with pytest.raises(PermissionDeniedError):
            add_comment(meal, household.member, 'Too late?')
        add_comment(meal, household.admin, 'Parents can still comment')

    def test_audited(self, household, meal):
        add_comment(meal, household.member, 'Yum')
        entry = PlanChangeLog.query.filter_by(change_type='COMMENT_ADDED').one()
        assert entry.meal_id == meal.id
        assert entry.member_id == household.member.id


class TestEditAndDelete:

    def test_author_edits(self, household, meal):
        comment = add_comment(meal, household.member, 'Yum')
        edit_comment(comment, household.member, 'Yum yum')
        assert comment.content == 'Yum yum'
        assert comment.is_edited
        entry = PlanChangeLog.query.filter_by(change_type='COMMENT_EDITED').one()
        assert entry.old_value == {'content': 'Yum'}

    def test_only_author_edits(self, household, meal):
        comment = add_comment(meal, household.member, 'Yum')
        with pytest.raises(PermissionDeniedError):
            edit_comment(comment, household.admin, 'Rewritten')

    def test_edit_closed_after_cutoff(self, household, meal):
        comment = add_comment(meal, household.member, 'Yum')
        close_comments(meal, household.admin)
        with pytest.raises(PermissionDeniedError):
            edit_comment(comment, household.member, 'Yum yum')

    def test_author_deletes(self, household, meal):
        comment = add_comment(meal, household.member, 'Yum')
        comment_id = comment.id
        delete_comment(comment, household.member)
        assert list_comments(meal) == []
        with pytest.raises(NotFoundError):
            get_comment(meal, comment_id)
        assert PlanChangeLog.query.filter_by(change_type='COMMENT_DELETED').count() == 1

    def test_parent_deletes_any(self, household, meal):
        comment = add_comment(meal, household.child, 'Yuck')
        delete_comment(comment, household.admin)
        assert list_comments(meal) == []

    def test_member_cannot_delete_others(self, household, meal):
        comment = add_comment(meal, household.child, 'Yuck')
        with pytest.raises(PermissionDeniedError):
            delete_comment(comment, household.member)


class TestListComments:

    def test_newest_first(self, household, meal):
        first = add_comment(meal, household.member, 'First')
        second = add_comment(meal, household.child, 'Second')
        assert [c.id for c in list_comments(meal)] == [second.id, first.id]

    def test_comment_of_other_meal_not_found(self, household, meal):
        other_meal = meal.weekly_plan.meals[1]
        comment = add_comment(other_meal, household.member, 'Elsewhere')
        with pytest.raises(NotFoundError):
            get_comment(meal, comment.id)
