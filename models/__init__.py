"""Model package exports."""

from models.clothing_item import ClothingItem, Inspiration
from models.preferences import GENDERS, UserPreferences, default_preferences

__all__ = ["ClothingItem", "Inspiration", "GENDERS", "UserPreferences", "default_preferences"]
