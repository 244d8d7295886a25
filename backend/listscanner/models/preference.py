"""
List Scanner Backend — Preference SQLAlchemy Model
===================================================

What:  ORM model for the `preferences` table: small per-installation
       key/value state that is not part of any list.
Who:   Written and read through PreferenceDao by the privacy-consent and
       OCR-usage repositories.

Keys in use:
    privacy_consent_given         "true" / "false"
    weekly_usage_count            scans recognized since week_start
    week_start                    ISO date of the Monday the count belongs to
    warning_shown_for_threshold   "true" once the cost warning was dismissed
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from listscanner.database import Base


class Preference(Base):
    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Stored as text; the owning repository parses it
    value: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Preference(key='{self.key}', value='{self.value}')>"
