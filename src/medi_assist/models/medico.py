"""Pydantic schemas for the study tools: mnemonics, differential diagnosis, MCQs, study notes."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from medi_assist.models.base import WireModel


# -----------------------------------------------------------------------------
# Mnemonics
# -----------------------------------------------------------------------------


class MnemonicsInput(WireModel):
    topic: str = Field(..., min_length=3, description='Topic or list to memorise (e.g. "Cranial Nerves (Order)").')


class MnemonicsOutput(WireModel):
    mnemonic: str = Field(..., description="The mnemonic itself.")
    explanation: str = Field(..., description="What each part of the mnemonic stands for.")
    topic_generated: Optional[str] = Field(default=None, description="The topic the mnemonic was generated for.")


# -----------------------------------------------------------------------------
# Differential diagnosis trainer
# -----------------------------------------------------------------------------


class DifferentialDiagnosisInput(WireModel):
    symptoms: str = Field(..., min_length=10, description="Symptoms or clinical scenario.")


class DifferentialDiagnosisOutput(WireModel):
    potential_diagnoses: List[str] = Field(..., description="Potential differential diagnoses.")
    explanation: str = Field(..., description="Rationale and distinguishing features.")


# -----------------------------------------------------------------------------
# MCQ generator
# -----------------------------------------------------------------------------


class MCQGeneratorInput(WireModel):
    topic: str = Field(..., min_length=3, description='Medical topic (e.g. "Cardiology", "Hypertension").')
    count: int = Field(default=5, ge=1, le=10, description="Number of MCQs to generate (1-10).")


class MCQOption(WireModel):
    text: str
    is_correct: bool


class MCQ(WireModel):
    question: str
    options: List[MCQOption] = Field(..., min_length=4, max_length=4, description="Exactly four options.")
    explanation: Optional[str] = None

    @field_validator("options")
    @classmethod
    def exactly_one_correct(cls, v: List[MCQOption]) -> List[MCQOption]:
        correct = sum(1 for o in v if o.is_correct)
        if correct != 1:
            raise ValueError(f"exactly one option must be correct; got {correct}")
        return v


class MCQGeneratorOutput(WireModel):
    mcqs: List[MCQ]
    topic_generated: Optional[str] = None


# -----------------------------------------------------------------------------
# Study notes
# -----------------------------------------------------------------------------


class StudyNotesInput(WireModel):
    topic: str = Field(..., min_length=3)


class StudyNotesOutput(WireModel):
    notes: str = Field(..., description="Concise study notes with headings and bullet points.")
    summary_points: Optional[List[str]] = Field(default=None, description="3-5 key points for quick revision.")


# -----------------------------------------------------------------------------
# Study timetable
# -----------------------------------------------------------------------------


class StudyTimetableInput(WireModel):
    exam_name: str = Field(..., min_length=3, description='Exam being prepared for (e.g. "NEET PG").')
    exam_date: str = Field(..., min_length=1, description="Exam date, e.g. 2025-12-01.")
    subjects: List[str] = Field(..., min_length=1, description="Subjects to cover.")
    study_hours_per_week: int = Field(..., ge=1, le=100, description="Hours available for study each week.")


class StudyTimetableOutput(WireModel):
    timetable: str = Field(..., description="Weekly study plan in Markdown.")


# -----------------------------------------------------------------------------
# Anatomy visualizer
# -----------------------------------------------------------------------------


class AnatomyVisualizerInput(WireModel):
    anatomical_structure: str = Field(..., min_length=3, description='Structure to describe (e.g. "Brachial Plexus").')


class AnatomyVisualizerOutput(WireModel):
    description: str = Field(..., description="Location, parts, functions and clinical relevance.")
    image_url: Optional[str] = Field(default=None, description="Illustration URL when one is available.")
    related_structures: Optional[List[str]] = None


# -----------------------------------------------------------------------------
# Clinical case simulation
# -----------------------------------------------------------------------------


class ClinicalCaseInput(WireModel):
    """Either a topic (new case) or a caseId with the student's last response."""

    case_id: Optional[str] = Field(default=None, description="Case being continued; omit to start a new case.")
    user_response: Optional[str] = Field(default=None, description="Student's answer to the previous step.")
    topic: Optional[str] = Field(default=None, min_length=3, description="Topic of a new case.")

    @model_validator(mode="after")
    def topic_or_case(self) -> "ClinicalCaseInput":
        if self.case_id:
            if not self.user_response:
                raise ValueError("userResponse is required when continuing a case")
        elif not self.topic:
            raise ValueError("topic is required to start a new case")
        return self


class ClinicalCaseOutput(WireModel):
    case_id: str = Field(..., description="Identifier of the case; stable across steps.")
    prompt: str = Field(..., description="Patient presentation or next question for the student.")
    feedback: Optional[str] = Field(default=None, description="Feedback on the student's last response.")
    is_completed: bool = Field(..., description="True once the case has concluded.")
    summary: Optional[str] = Field(default=None, description="Case summary once completed.")
