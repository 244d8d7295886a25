"""
List Scanner Backend — Consent and Usage Schemas
=================================================
"""

from datetime import date

from pydantic import BaseModel, Field


class ConsentRequest(BaseModel):
    consented: bool = Field(description="Whether photos may be sent to the cloud OCR engine")


class ConsentResponse(BaseModel):
    consented: bool


class UsageResponse(BaseModel):
    """OCR scans counted this week (weeks start on Monday, local time)."""

    weekly_usage: int
    week_start: date
    warning_threshold: int
    show_cost_warning: bool
