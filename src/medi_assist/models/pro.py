"""Pydantic schemas for the professional tools: discharge summary and triage/referral."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from medi_assist.models.base import WireModel
from medi_assist.models.symptoms import SymptomAnalyzerOutput


class DischargeSummaryInput(WireModel):
    patient_name: Optional[str] = None
    patient_age: Optional[str] = Field(default=None, description="e.g. '45 years', '6 months'.")
    admission_number: str = Field(..., min_length=1, description="Admission or OPD number.")
    primary_diagnosis: str = Field(..., min_length=3, description="Main confirmed diagnosis for the episode.")
    key_symptoms_or_procedure: Optional[str] = None
    additional_context: Optional[str] = None


class DischargeSummaryOutput(WireModel):
    hospital_course: str
    discharge_medications: List[str]
    follow_up_plans: List[str]
    patient_education: List[str]
    red_flags: List[str]
    notes_for_doctor: Optional[str] = None


class TriageAndReferralOutput(WireModel):
    """Mandatory analysis plus a referral draft present only for a high-confidence diagnosis."""

    analysis: SymptomAnalyzerOutput
    referral_draft: Optional[DischargeSummaryOutput] = None
