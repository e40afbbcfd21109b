"""
Pydantic schemas for symptom analysis.

Shared by the symptom analyzer flow, the tool that exposes it to chat, and the
triage pipeline.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from medi_assist.models.base import WireModel

Confidence = Literal["High", "Medium", "Low", "Possible"]


class PatientContext(WireModel):
    """Optional patient details that sharpen the analysis."""

    age: Optional[int] = Field(default=None, gt=0, description="Patient age in years.")
    sex: Optional[Literal["male", "female", "other"]] = Field(default=None, description="Patient biological sex.")
    history: Optional[str] = Field(default=None, description="Brief relevant medical history or context.")


class SymptomAnalyzerInput(WireModel):
    symptoms: str = Field(
        ...,
        min_length=10,
        description="The symptoms the user is experiencing (at least 10 characters).",
    )
    patient_context: Optional[PatientContext] = None


class Investigation(WireModel):
    name: str = Field(..., description='Name of the suggested investigation (e.g. "Chest X-ray", "CBC").')
    rationale: Optional[str] = Field(default=None, description="Why this investigation is suggested.")


class DiagnosisItem(WireModel):
    name: str = Field(..., description="The name of the potential diagnosis.")
    confidence: Optional[Confidence] = Field(default=None, description="Qualitative confidence tier.")
    rationale: Optional[str] = Field(default=None, description="Supporting evidence, including red flags.")


class NextStep(WireModel):
    """A suggested follow-up using another study tool."""

    title: str
    description: str
    tool_id: str = Field(..., description="ID of the tool to use for this step (e.g. 'mcq', 'flashcards').")
    prefilled_topic: str
    cta: str = Field(..., description="Call-to-action text (e.g. 'Generate MCQs').")


class SymptomAnalyzerOutput(WireModel):
    diagnoses: List[DiagnosisItem] = Field(..., description="Potential differential diagnoses.")
    suggested_investigations: Optional[List[Investigation]] = None
    suggested_management: Optional[List[str]] = None
    next_steps: Optional[List[NextStep]] = None
    disclaimer: Optional[str] = None
