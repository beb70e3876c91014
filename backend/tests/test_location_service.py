"""Tests for the location store and the one-primary-per-restaurant rule."""

import uuid

import pytest

from restaurant_core.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from restaurant_core.models.location import Location
from restaurant_core.schemas.location import LocationCreate


def primary_ids(db_session, restaurant_id):
    db_session.expire_all()
    return [
        loc.id
        for loc in db_session.query(Location).filter(
            Location.restaurant_id == restaurant_id, Location.is_primary == True
        )
    ]


# ============== Create ==============

class TestCreateLocation:
    """Creating locations and the primary flag on insert."""

    def test_first_location_becomes_primary(self, make_location):
        location = make_location("downtown")
        assert location.is_primary is True
        assert location.url_name == "downtown"
        assert location.status == "active"

    def test_second_location_is_not_primary(self, make_location, restaurant, db_session):
        first = make_location("downtown")
        second = make_location("uptown")
        assert second.is_primary is False
        assert primary_ids(db_session, restaurant.id) == [first.id]

    def test_create_primary_moves_flag(self, make_location, restaurant, db_session):
        make_location("downtown")
        new_primary = make_location("uptown", is_primary=True)
        assert primary_ids(db_session, restaurant.id) == [new_primary.id]

    def test_accepts_schema_instance(self, location_store, restaurant, location_data):
        payload = LocationCreate(**location_data("harbor"))
        location = location_store.create(restaurant.id, payload)
        assert location.name == "Location harbor"
        assert location.operating_hours["holidays"]["closed"] is True

    def test_slug_is_lowercased(self, make_location):
        location = make_location("Harbor-View")
        assert location.url_name == "harbor-view"

    def test_slug_conflict_is_case_insensitive(self, make_location):
        make_location("downtown")
        with pytest.raises(ConflictError):
            make_location("DOWNTOWN")

    def test_same_slug_allowed_in_other_restaurant(self, make_location, other_restaurant):
        make_location("downtown")
        other = make_location("downtown", restaurant_id=other_restaurant.id)
        assert other.restaurant_id == other_restaurant.id
        assert other.is_primary is True

    def test_unknown_restaurant(self, make_location):
        with pytest.raises(NotFoundError):
            make_location("downtown", restaurant_id=uuid.uuid4())

    def test_incomplete_operating_hours(self, location_store, restaurant, location_data, hours):
        hours = dict(hours)
        del hours["holidays"]
        with pytest.raises(ValidationError) as exc_info:
            location_store.create(restaurant.id, location_data("downtown", operating_hours=hours))
        fields = [d["field"] for d in exc_info.value.details]
        assert any(f.startswith("operating_hours") for f in fields)

    def test_invalid_time_format(self, location_store, restaurant, location_data, hours_for):
        hours = hours_for(open_time="9am")
        with pytest.raises(ValidationError):
            location_store.create(restaurant.id, location_data("downtown", operating_hours=hours))

    def test_invalid_phone(self, location_store, restaurant, location_data):
        with pytest.raises(ValidationError):
            location_store.create(restaurant.id, location_data("downtown", phone="12-34"))

    def test_invalid_slug(self, location_store, restaurant, location_data):
        with pytest.raises(ValidationError):
            location_store.create(restaurant.id, location_data("down town!"))

    def test_non_mapping_input(self, location_store, restaurant):
        with pytest.raises(ValidationError):
            location_store.create(restaurant.id, ["not", "a", "mapping"])

    def test_validation_failure_writes_nothing(self, location_store, restaurant, db_session, location_data):
        with pytest.raises(ValidationError):
            location_store.create(restaurant.id, location_data("x"))
        assert db_session.query(Location).count() == 0


# ============== Update ==============

class TestUpdateLocation:
    """Partial updates, slug checks and primary hand-off."""

    def test_update_fields(self, location_store, make_location):
        location = make_location("downtown")
        updated = location_store.update(location.id, {"name": "Downtown Grill", "address_city": "Shelbyville"})
        assert updated.name == "Downtown Grill"
        assert updated.address_city == "Shelbyville"
        assert updated.url_name == "downtown"

    def test_update_missing_location(self, location_store):
        with pytest.raises(NotFoundError):
            location_store.update(uuid.uuid4(), {"name": "Nowhere"})

    def test_update_with_no_fields(self, location_store, make_location):
        location = make_location("downtown")
        with pytest.raises(ValidationError):
            location_store.update(location.id, {})

    def test_update_rejects_null_name(self, location_store, make_location):
        location = make_location("downtown")
        with pytest.raises(ValidationError):
            location_store.update(location.id, {"name": None})

    def test_slug_change_conflict(self, location_store, make_location):
        make_location("downtown")
        uptown = make_location("uptown")
        with pytest.raises(ConflictError):
            location_store.update(uptown.id, {"url_name": "Downtown"})

    def test_slug_change_to_own_slug(self, location_store, make_location):
        location = make_location("downtown")
        updated = location_store.update(location.id, {"url_name": "DOWNTOWN", "name": "Renamed"})
        assert updated.url_name == "downtown"
        assert updated.name == "Renamed"

    def test_set_primary_through_update(self, location_store, make_location, restaurant, db_session):
        make_location("downtown")
        uptown = make_location("uptown")
        location_store.update(uptown.id, {"is_primary": True})
        assert primary_ids(db_session, restaurant.id) == [uptown.id]

    def test_unset_primary_hands_off(self, location_store, make_location, restaurant, db_session):
        downtown = make_location("downtown")
        uptown = make_location("uptown")
        location_store.update(downtown.id, {"is_primary": False})
        assert primary_ids(db_session, restaurant.id) == [uptown.id]

    def test_only_location_stays_primary(self, location_store, make_location, restaurant, db_session):
        downtown = make_location("downtown")
        location_store.update(downtown.id, {"is_primary": False})
        assert primary_ids(db_session, restaurant.id) == [downtown.id]

    def test_update_operating_hours(self, location_store, make_location, hours_for):
        location = make_location("downtown")
        updated = location_store.update(location.id, {"operating_hours": hours_for("10:00", "23:30")})
        assert updated.operating_hours["monday"]["open"] == "10:00"
        assert updated.operating_hours["monday"]["close"] == "23:30"


# ============== Set primary ==============

class TestSetPrimary:
    """The atomic clear-then-set swap."""

    def test_set_primary(self, location_store, make_location, restaurant, db_session):
        make_location("downtown")
        uptown = make_location("uptown")
        result = location_store.set_primary(uptown.id)
        assert result.id == uptown.id
        assert primary_ids(db_session, restaurant.id) == [uptown.id]
        assert location_store.get_primary(restaurant.id).id == uptown.id

    def test_set_primary_is_idempotent(self, location_store, make_location, restaurant, db_session):
        downtown = make_location("downtown")
        make_location("uptown")
        location_store.set_primary(downtown.id)
        location_store.set_primary(downtown.id)
        assert primary_ids(db_session, restaurant.id) == [downtown.id]

    def test_set_primary_missing(self, location_store):
        with pytest.raises(NotFoundError):
            location_store.set_primary(uuid.uuid4())

    def test_other_restaurants_untouched(self, location_store, make_location, restaurant, other_restaurant, db_session):
        make_location("downtown")
        uptown = make_location("uptown")
        elsewhere = make_location("elsewhere", restaurant_id=other_restaurant.id)
        location_store.set_primary(uptown.id)
        assert primary_ids(db_session, other_restaurant.id) == [elsewhere.id]


# ============== Delete ==============

class TestDeleteLocation:
    """Deletion, last-location protection and primary re-election."""

    def test_cannot_delete_only_location(self, location_store, make_location, restaurant, db_session):
        downtown = make_location("downtown")
        with pytest.raises(InvalidOperationError):
            location_store.delete(downtown.id)
        assert db_session.query(Location).filter(Location.restaurant_id == restaurant.id).count() == 1

    def test_delete_primary_promotes_sibling(self, location_store, make_location, restaurant):
        a = make_location("location-a")
        b = make_location("location-b")
        assert location_store.delete(a.id) is True

        primary = location_store.get_primary(restaurant.id)
        assert primary.id == b.id
        assert primary.is_primary is True
        assert location_store.get(a.id) is None

    def test_delete_prefers_active_successor(self, location_store, make_location, restaurant, db_session):
        a = make_location("location-a")
        make_location("location-b", status="inactive")
        c = make_location("location-c")
        location_store.delete(a.id)
        assert primary_ids(db_session, restaurant.id) == [c.id]

    def test_delete_falls_back_to_inactive(self, location_store, make_location, restaurant, db_session):
        a = make_location("location-a")
        b = make_location("location-b", status="inactive")
        location_store.delete(a.id)
        assert primary_ids(db_session, restaurant.id) == [b.id]

    def test_delete_oldest_sibling_wins(self, location_store, make_location, restaurant, db_session):
        a = make_location("location-a")
        b = make_location("location-b")
        make_location("location-c")
        location_store.delete(a.id)
        assert primary_ids(db_session, restaurant.id) == [b.id]

    def test_delete_non_primary(self, location_store, make_location, restaurant, db_session):
        a = make_location("location-a")
        b = make_location("location-b")
        location_store.delete(b.id)
        assert primary_ids(db_session, restaurant.id) == [a.id]

    def test_delete_missing(self, location_store):
        with pytest.raises(NotFoundError):
            location_store.delete(uuid.uuid4())


# ============== Reads ==============

class TestLocationReads:
    """Listing, slug lookup and stats."""

    def test_get_by_restaurant_orders_primary_first(self, location_store, make_location, restaurant):
        a = make_location("location-a")
        b = make_location("location-b")
        c = make_location("location-c")
        location_store.set_primary(c.id)
        ids = [loc.id for loc in location_store.get_by_restaurant(restaurant.id)]
        assert ids == [c.id, a.id, b.id]

    def test_get_by_restaurant_status_filter(self, location_store, make_location, restaurant):
        make_location("location-a")
        b = make_location("location-b", status="inactive")
        inactive = location_store.get_by_restaurant(restaurant.id, status="inactive")
        assert [loc.id for loc in inactive] == [b.id]

    def test_get_by_restaurant_invalid_status(self, location_store, restaurant):
        with pytest.raises(ValidationError):
            location_store.get_by_restaurant(restaurant.id, status="archived")

    def test_get_primary_without_locations(self, location_store, restaurant):
        assert location_store.get_primary(restaurant.id) is None

    def test_find_by_slug(self, location_store, make_location, restaurant):
        location = make_location("downtown")
        assert location_store.find_by_slug(restaurant.id, "DownTown").id == location.id
        assert location_store.find_by_slug(restaurant.id, "nowhere") is None

    def test_get_stats(self, location_store, make_location, restaurant):
        make_location("location-a")
        make_location("location-b")
        make_location("location-c", status="inactive")
        stats = location_store.get_stats(restaurant.id)
        assert stats.total_locations == 3
        assert stats.active_locations == 2
        assert stats.inactive_locations == 1
        assert stats.primary_locations == 1

    def test_get_stats_empty(self, location_store, restaurant):
        stats = location_store.get_stats(restaurant.id)
        assert stats.total_locations == 0
        assert stats.primary_locations == 0


# ============== Repair ==============

class TestEnsurePrimary:
    """Repairing a restaurant left without a primary location."""

    def test_elects_when_none_primary(self, location_store, make_location, restaurant, db_session):
        a = make_location("location-a")
        make_location("location-b")
        db_session.query(Location).update({"is_primary": False})
        db_session.commit()

        primary = location_store.ensure_primary(restaurant.id)
        assert primary.id == a.id
        assert primary_ids(db_session, restaurant.id) == [a.id]

    def test_keeps_existing_primary(self, location_store, make_location, restaurant):
        make_location("location-a")
        b = make_location("location-b", is_primary=True)
        assert location_store.ensure_primary(restaurant.id).id == b.id

    def test_no_locations(self, location_store, restaurant):
        assert location_store.ensure_primary(restaurant.id) is None


class TestPrimaryInvariant:
    """Exactly one primary after any sequence of operations."""

    def test_operation_sequence(self, location_store, make_location, restaurant, db_session):
        a = make_location("location-a")
        b = make_location("location-b")
        c = make_location("location-c", is_primary=True)
        assert len(primary_ids(db_session, restaurant.id)) == 1

        location_store.set_primary(b.id)
        assert primary_ids(db_session, restaurant.id) == [b.id]

        location_store.delete(b.id)
        assert len(primary_ids(db_session, restaurant.id)) == 1

        location_store.update(a.id, {"is_primary": True})
        assert primary_ids(db_session, restaurant.id) == [a.id]

        location_store.delete(a.id)
        assert primary_ids(db_session, restaurant.id) == [c.id]

        with pytest.raises(InvalidOperationError):
            location_store.delete(c.id)
        assert primary_ids(db_session, restaurant.id) == [c.id]


# ============== Identifiers ==============

class TestIdentifierInput:
    """IDs arrive as UUIDs or their string form."""

    def test_string_ids_are_accepted(self, location_store, restaurant, location_data, db_session):
        a = location_store.create(str(restaurant.id), location_data("location-a"))
        b = location_store.create(str(restaurant.id), location_data("location-b"))

        assert location_store.set_primary(str(b.id)).id == b.id
        assert [loc.id for loc in location_store.get_by_restaurant(str(restaurant.id))] == [b.id, a.id]
        assert location_store.update(str(a.id), {"name": "Renamed"}).name == "Renamed"
        assert location_store.delete(str(b.id)) is True
        assert primary_ids(db_session, restaurant.id) == [a.id]

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "", 42])
    def test_malformed_location_id(self, location_store, make_location, bad_id):
        make_location("downtown")
        with pytest.raises(ValidationError):
            location_store.set_primary(bad_id)
        with pytest.raises(ValidationError):
            location_store.delete(bad_id)
        with pytest.raises(ValidationError):
            location_store.update(bad_id, {"name": "Renamed"})

    def test_malformed_restaurant_id_writes_nothing(self, location_store, location_data, db_session):
        with pytest.raises(ValidationError) as exc_info:
            location_store.create("restaurant-1", location_data("downtown"))
        assert "restaurant_id" in exc_info.value.message
        assert db_session.query(Location).count() == 0
