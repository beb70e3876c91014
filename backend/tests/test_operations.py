"""Tests for the module-level operation surface."""

import uuid

import pytest

from restaurant_core import operations
from restaurant_core.core.exceptions import InvalidOperationError, NotFoundError


class TestLocationOperations:
    """Restaurant R with locations A and B."""

    def test_delete_primary_example(self, db_session, restaurant, location_data):
        a = operations.create_location(db_session, restaurant.id, location_data("location-a"))
        b = operations.create_location(db_session, restaurant.id, location_data("location-b"))
        assert a.is_primary is True

        assert operations.delete_location(db_session, a.id) is True

        listed = operations.list_locations(db_session, restaurant.id)
        assert [loc.id for loc in listed] == [b.id]
        assert listed[0].is_primary is True

    def test_delete_last_location(self, db_session, restaurant, location_data):
        a = operations.create_location(db_session, restaurant.id, location_data("location-a"))
        with pytest.raises(InvalidOperationError):
            operations.delete_location(db_session, a.id)
        assert len(operations.list_locations(db_session, restaurant.id)) == 1

    def test_update_and_set_primary(self, db_session, restaurant, location_data):
        operations.create_location(db_session, restaurant.id, location_data("location-a"))
        b = operations.create_location(db_session, restaurant.id, location_data("location-b"))

        updated = operations.update_location(db_session, b.id, {"status": "inactive"})
        assert updated.status == "inactive"

        promoted = operations.set_primary_location(db_session, b.id)
        assert promoted.is_primary is True
        assert [loc.id for loc in operations.list_locations(db_session, restaurant.id, "inactive")] == [b.id]

    def test_set_primary_missing(self, db_session):
        with pytest.raises(NotFoundError):
            operations.set_primary_location(db_session, uuid.uuid4())


class TestAssignmentOperations:
    """User U with assignments to L1 (primary) and L2."""

    def test_remove_primary_example(self, db_session, user, role, make_location):
        l1 = make_location("location-1")
        l2 = make_location("location-2")
        first = operations.assign_user_to_location(db_session, user.id, l1.id, role.id)
        second = operations.assign_user_to_location(db_session, user.id, l2.id, role.id)
        assert first.is_primary_location is True
        assert second.is_primary_location is False

        assert operations.remove_user_from_location(db_session, user.id, l1.id) is True
        assert operations.user_has_location_access(db_session, user.id, l1.id) is False

        db_session.expire_all()
        db_session.refresh(second)
        assert second.is_primary_location is False

        assert operations.set_user_primary_location(db_session, user.id, l2.id) is True
        db_session.refresh(second)
        assert second.is_primary_location is True

    def test_assign_twice_returns_same_row(self, db_session, user, role, make_location):
        l1 = make_location("location-1")
        first = operations.assign_user_to_location(db_session, user.id, l1.id, role.id)
        again = operations.assign_user_to_location(db_session, user.id, l1.id, role.id)
        assert again.id == first.id

    def test_set_primary_for_unassigned_location(self, db_session, user, make_location):
        l1 = make_location("location-1")
        assert operations.set_user_primary_location(db_session, user.id, l1.id) is False
