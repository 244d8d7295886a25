"""
List Scanner Backend — Repositories
====================================

What:  The API the rest of the app uses for photos, lists, items and the
       user's preferences (cloud OCR consent, weekly OCR usage).
How:   Thin wrappers over the DAOs. Every method returns a Result;
       exceptions from the store never cross this boundary.
"""

from listscanner.repositories.consent_repository import PrivacyConsentRepository
from listscanner.repositories.item_repository import ItemRepository
from listscanner.repositories.list_repository import ListRepository
from listscanner.repositories.photo_repository import PhotoRepository
from listscanner.repositories.usage_repository import UsageTrackingRepository

__all__ = [
    "ItemRepository",
    "ListRepository",
    "PhotoRepository",
    "PrivacyConsentRepository",
    "UsageTrackingRepository",
]
