"""Pydantic schemas for clinical guideline retrieval."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from medi_assist.models.base import WireModel


class GuidelineRetrievalInput(WireModel):
    query: str = Field(..., min_length=3, description="Condition or treatment to look up guidelines for.")
    context: Optional[str] = Field(
        default=None,
        description="Patient group, aspect (diagnosis, management) or preferred source (WHO, NICE).",
    )


class GuidelineItem(WireModel):
    title: str
    summary: str = Field(..., description="Key points of the guideline.")
    source: Optional[str] = Field(default=None, description='Issuing body and year, e.g. "NICE NG136".')


class GuidelineRetrievalOutput(WireModel):
    results: List[GuidelineItem] = Field(..., description="Matching guidelines; empty when none were found.")
