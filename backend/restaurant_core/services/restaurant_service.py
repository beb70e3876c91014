"""Restaurant existence checks used by the location store."""

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from restaurant_core.core.validators import parse_uuid
from restaurant_core.models.restaurant import Restaurant


class RestaurantDirectory:
    """Read-only view of the tenant table."""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, restaurant_id: uuid.UUID) -> bool:
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        return self.db.query(Restaurant.id).filter(Restaurant.id == restaurant_id).first() is not None

    def get(self, restaurant_id: uuid.UUID) -> Optional[Restaurant]:
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        return self.db.query(Restaurant).filter(Restaurant.id == restaurant_id).first()
