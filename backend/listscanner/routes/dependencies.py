"""
List Scanner Backend — Route Dependencies
==========================================

What:  The object graph every route works against, built once per app in
       create_app() and exposed through FastAPI dependencies.

    DataStore ─┬─ PhotoDao ─┬─ PhotoRepository ─────────┐
               ├─ ListDao  ─┼─ ListRepository           │
               ├─ ItemDao  ─┴─ ItemRepository           ├─ ScanService
               │               ListCreationService ─────┤
               └─ PreferenceDao ─┬─ PrivacyConsentRepo ─┤
                                 └─ UsageTrackingRepo ──┤
                                    ImageCropService ───┘
"""

from dataclasses import dataclass

from fastapi import Request

from listscanner.repositories.consent_repository import PrivacyConsentRepository
from listscanner.repositories.item_repository import ItemRepository
from listscanner.repositories.list_repository import ListRepository
from listscanner.repositories.photo_repository import PhotoRepository
from listscanner.repositories.usage_repository import UsageTrackingRepository
from listscanner.services.file_service import FileService
from listscanner.services.image_crop_service import ImageCropService
from listscanner.services.list_creation_service import ListCreationService
from listscanner.services.ocr_base import OcrEngine
from listscanner.services.scan_service import ScanService
from listscanner.store.data_store import DataStore
from listscanner.store.item_dao import ItemDao
from listscanner.store.list_dao import ListDao
from listscanner.store.photo_dao import PhotoDao
from listscanner.store.preference_dao import PreferenceDao


@dataclass
class AppServices:
    store: DataStore
    ocr_engine: OcrEngine
    file_service: FileService
    photos: PhotoRepository
    lists: ListRepository
    items: ItemRepository
    list_creation: ListCreationService
    consent: PrivacyConsentRepository
    usage: UsageTrackingRepository
    image_crop: ImageCropService
    scanner: ScanService

    @classmethod
    def build(cls, store: DataStore, ocr_engine: OcrEngine, file_service: FileService) -> "AppServices":
        photo_dao = PhotoDao(store)
        list_dao = ListDao(store)
        item_dao = ItemDao(store)
        preference_dao = PreferenceDao(store)

        photos = PhotoRepository(photo_dao, file_service)
        list_creation = ListCreationService(store, list_dao, item_dao)
        consent = PrivacyConsentRepository(preference_dao)
        usage = UsageTrackingRepository(store, preference_dao)
        image_crop = ImageCropService()
        return cls(
            store=store,
            ocr_engine=ocr_engine,
            file_service=file_service,
            photos=photos,
            lists=ListRepository(store, list_dao, photo_dao),
            items=ItemRepository(store, item_dao),
            list_creation=list_creation,
            consent=consent,
            usage=usage,
            image_crop=image_crop,
            scanner=ScanService(photos, list_creation, ocr_engine, consent, usage, image_crop),
        )


def get_services(request: Request) -> AppServices:
    return request.app.state.services
