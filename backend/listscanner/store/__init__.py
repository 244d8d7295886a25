"""
List Scanner Backend — Persistence Layer
=========================================

    DataStore       transactions, read sessions, live query fan-out
    PhotoDao        photos
    ListDao         lists (+ the lists-with-counts overview)
    ItemDao         items
    PreferenceDao   preferences (key/value)
"""

from listscanner.store.data_store import DataStore
from listscanner.store.item_dao import ItemDao
from listscanner.store.list_dao import ListDao
from listscanner.store.live_query import LiveQuery
from listscanner.store.photo_dao import PhotoDao
from listscanner.store.preference_dao import PreferenceDao

__all__ = ["DataStore", "ItemDao", "ListDao", "LiveQuery", "PhotoDao", "PreferenceDao"]
