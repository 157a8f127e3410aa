"""
Tests for household and member use cases
"""
import uuid
import pytest

from homebudget.infrastructure.db.models import Category, User
from homebudget.application.households import (
    CreateHouseholdUseCase,
    GetHouseholdProfileService,
    ResolveHouseholdUseCase,
    UpdateHouseholdNameUseCase,
    DEFAULT_CATEGORIES,
)
from homebudget.application.household_members import (
    CreateHouseholdMemberUseCase,
    DeactivateHouseholdMemberUseCase,
    ListHouseholdMembersService,
    UpdateHouseholdMemberUseCase,
)
from homebudget.application.errors import (
    HouseholdNotFound,
    InvalidPayload,
    MemberNameConflict,
    MemberNotFound,
)


class TestHousehold:
    def test_resolve(self, db_session, household):
        assert ResolveHouseholdUseCase(db_session).execute(household["user"].id) == household["household_id"]

    def test_resolve_unknown_user(self, db_session):
        with pytest.raises(HouseholdNotFound):
            ResolveHouseholdUseCase(db_session).execute(999)

    def test_create_with_default_categories(self, db_session):
        user = User(email="new@example.com", password_hash="x")
        db_session.add(user)
        db_session.flush()

        household_id = CreateHouseholdUseCase(db_session).execute(user.id)

        names = {c.name for c in db_session.query(Category).filter(Category.household_id == household_id)}
        assert names == set(DEFAULT_CATEGORIES)

    def test_profile_with_defaults(self, db_session, household):
        profile = GetHouseholdProfileService(db_session).execute(household["household_id"], include_defaults=True)
        assert profile["household"].name == "Test household"
        assert [c.name for c in profile["default_categories"]] == ["Food", "Fun", "Transport"]

    def test_rename(self, db_session, household):
        renamed = UpdateHouseholdNameUseCase(db_session).execute(household["household_id"], " Home ")
        assert renamed.name == "Home"

    def test_rename_too_long(self, db_session, household):
        with pytest.raises(InvalidPayload):
            UpdateHouseholdNameUseCase(db_session).execute(household["household_id"], "h" * 121)


class TestMembers:
    def test_list_active_only(self, db_session, household):
        page = ListHouseholdMembersService(db_session).execute(household["household_id"])
        assert [m.full_name for m in page.data] == ["Alice", "Bob"]

    def test_list_including_inactive(self, db_session, household):
        page = ListHouseholdMembersService(db_session).execute(household["household_id"], include_inactive=True)
        assert [m.full_name for m in page.data] == ["Alice", "Bob", "Carol"]
        assert page.meta.total_items == 3

    def test_create(self, db_session, household):
        member = CreateHouseholdMemberUseCase(db_session).execute(household["household_id"], " Dave ")
        assert member.full_name == "Dave"
        assert member.is_active is True

    def test_create_conflict_includes_inactive(self, db_session, household):
        with pytest.raises(MemberNameConflict):
            CreateHouseholdMemberUseCase(db_session).execute(household["household_id"], "carol")

    def test_update_name_and_reactivate(self, db_session, household):
        member = UpdateHouseholdMemberUseCase(db_session).execute(
            household["household_id"], household["carol"], full_name="Caroline", is_active=True
        )
        assert member.full_name == "Caroline"
        assert member.is_active is True

    def test_update_nothing(self, db_session, household):
        with pytest.raises(InvalidPayload):
            UpdateHouseholdMemberUseCase(db_session).execute(household["household_id"], household["bob"])

    def test_update_conflict(self, db_session, household):
        with pytest.raises(MemberNameConflict):
            UpdateHouseholdMemberUseCase(db_session).execute(
                household["household_id"], household["bob"], full_name="ALICE"
            )

    def test_deactivate(self, db_session, household):
        DeactivateHouseholdMemberUseCase(db_session).execute(household["household_id"], household["bob"])
        page = ListHouseholdMembersService(db_session).execute(household["household_id"])
        assert [m.full_name for m in page.data] == ["Alice"]

    def test_deactivate_foreign(self, db_session, household, other_household):
        with pytest.raises(MemberNotFound):
            DeactivateHouseholdMemberUseCase(db_session).execute(other_household["household_id"], household["bob"])

    def test_deactivate_missing(self, db_session, household):
        with pytest.raises(MemberNotFound):
            DeactivateHouseholdMemberUseCase(db_session).execute(household["household_id"], uuid.uuid4())
