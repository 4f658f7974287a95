"""Read-only lookups into the property and add-on catalog.

The catalog is owned by another service; the booking core only reads it.
"""

from typing import TYPE_CHECKING

from rental_core.models import AddOnService, Property

from .records import item_to_add_on, item_to_property

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class CatalogService:
    """Property and add-on lookups by ID."""

    PROPERTIES_TABLE = "properties"
    ADDONS_TABLE = "addons"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_property(self, property_id: str) -> Property | None:
        item = self.db.get_item(self.PROPERTIES_TABLE, {"property_id": property_id})
        return item_to_property(item) if item else None

    def get_add_on(self, addon_id: str) -> AddOnService | None:
        item = self.db.get_item(self.ADDONS_TABLE, {"addon_id": addon_id})
        return item_to_add_on(item) if item else None
