"""
List Scanner Backend — Privacy Consent Repository
==================================================

Whether the user has agreed that photos may be sent to the cloud OCR
engine. Nothing has been agreed until set_user_consent(True) is called;
ScanService refuses to scan before that.
"""

import logging

from listscanner.repositories.base import BaseRepository
from listscanner.result import Result, Success
from listscanner.store.live_query import LiveQuery
from listscanner.store.preference_dao import PreferenceDao, format_flag

logger = logging.getLogger(__name__)

PRIVACY_CONSENT_GIVEN = "privacy_consent_given"


class PrivacyConsentRepository(BaseRepository):
    def __init__(self, preference_dao: PreferenceDao):
        self._dao = preference_dao

    async def has_user_consented(self) -> Result[bool]:
        return await self._guard(
            "load the privacy consent",
            lambda: self._dao.get_flag(PRIVACY_CONSENT_GIVEN),
        )

    async def set_user_consent(self, consented: bool) -> Result[bool]:
        """Record the user's answer; Success(consented)."""

        async def operation() -> bool:
            await self._dao.set(PRIVACY_CONSENT_GIVEN, format_flag(consented))
            return consented

        result = await self._guard("save the privacy consent", operation)
        if isinstance(result, Success):
            logger.info("Cloud OCR consent %s", "given" if consented else "withdrawn")
        return result

    def observe_consent_state(self) -> LiveQuery[bool]:
        return self._dao.observe_flag(PRIVACY_CONSENT_GIVEN)
