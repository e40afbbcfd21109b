"""Pydantic schemas for flow inputs and outputs."""

from medi_assist.models.chat import ChatMessageInput, ChatMessageOutput
from medi_assist.models.guidelines import GuidelineItem, GuidelineRetrievalInput, GuidelineRetrievalOutput
from medi_assist.models.medico import (
    MCQ,
    AnatomyVisualizerInput,
    AnatomyVisualizerOutput,
    ClinicalCaseInput,
    ClinicalCaseOutput,
    DifferentialDiagnosisInput,
    DifferentialDiagnosisOutput,
    MCQGeneratorInput,
    MCQGeneratorOutput,
    MCQOption,
    MnemonicsInput,
    MnemonicsOutput,
    StudyNotesInput,
    StudyNotesOutput,
    StudyTimetableInput,
    StudyTimetableOutput,
)
from medi_assist.models.pro import DischargeSummaryInput, DischargeSummaryOutput, TriageAndReferralOutput
from medi_assist.models.symptoms import (
    DiagnosisItem,
    Investigation,
    NextStep,
    PatientContext,
    SymptomAnalyzerInput,
    SymptomAnalyzerOutput,
)

__all__ = [
    "AnatomyVisualizerInput",
    "AnatomyVisualizerOutput",
    "ChatMessageInput",
    "ChatMessageOutput",
    "ClinicalCaseInput",
    "ClinicalCaseOutput",
    "DiagnosisItem",
    "DifferentialDiagnosisInput",
    "DifferentialDiagnosisOutput",
    "DischargeSummaryInput",
    "DischargeSummaryOutput",
    "GuidelineItem",
    "GuidelineRetrievalInput",
    "GuidelineRetrievalOutput",
    "Investigation",
    "MCQ",
    "MCQGeneratorInput",
    "MCQGeneratorOutput",
    "MCQOption",
    "MnemonicsInput",
    "MnemonicsOutput",
    "NextStep",
    "PatientContext",
    "StudyNotesInput",
    "StudyNotesOutput",
    "StudyTimetableInput",
    "StudyTimetableOutput",
    "SymptomAnalyzerInput",
    "SymptomAnalyzerOutput",
    "TriageAndReferralOutput",
]
