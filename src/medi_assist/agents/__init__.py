"""
Flow definitions (symptom analyzer, study tools, guideline retrieval,
professional tools, chat).

Importing this package registers every flow in the process-wide registry and
freezes it.
"""

from medi_assist.agents.symptom_analyzer import SYMPTOM_ANALYZER, analyze_symptoms
from medi_assist.agents.medico import (
    ANATOMY_VISUALIZER,
    CLINICAL_CASE_SIMULATOR,
    DIFFERENTIAL_DIAGNOSIS_TRAINER,
    MCQ_GENERATOR,
    MNEMONICS_GENERATOR,
    STUDY_NOTES_GENERATOR,
    STUDY_TIMETABLE_CREATOR,
    create_study_timetable,
    describe_anatomy,
    generate_mcqs,
    generate_mnemonic,
    generate_study_notes,
    simulate_clinical_case,
    train_differential_diagnosis,
)
from medi_assist.agents.guidelines import GUIDELINE_RETRIEVAL, retrieve_guidelines
from medi_assist.agents.pro import (
    DISCHARGE_SUMMARY_GENERATOR,
    TRIAGE_AND_REFERRAL,
    generate_discharge_summary,
    triage_and_referral,
)
from medi_assist.agents.chat import CHAT_FLOW, SYMPTOM_ANALYZER_TOOL, process_chat_message
from medi_assist.flows.registry import get_registry

FLOWS = {
    flow.name: flow
    for flow in (
        SYMPTOM_ANALYZER,
        MNEMONICS_GENERATOR,
        DIFFERENTIAL_DIAGNOSIS_TRAINER,
        MCQ_GENERATOR,
        STUDY_NOTES_GENERATOR,
        STUDY_TIMETABLE_CREATOR,
        ANATOMY_VISUALIZER,
        CLINICAL_CASE_SIMULATOR,
        GUIDELINE_RETRIEVAL,
        DISCHARGE_SUMMARY_GENERATOR,
        CHAT_FLOW,
    )
}

get_registry().freeze()

__all__ = [
    "ANATOMY_VISUALIZER",
    "CHAT_FLOW",
    "CLINICAL_CASE_SIMULATOR",
    "DIFFERENTIAL_DIAGNOSIS_TRAINER",
    "DISCHARGE_SUMMARY_GENERATOR",
    "FLOWS",
    "GUIDELINE_RETRIEVAL",
    "MCQ_GENERATOR",
    "MNEMONICS_GENERATOR",
    "STUDY_NOTES_GENERATOR",
    "STUDY_TIMETABLE_CREATOR",
    "SYMPTOM_ANALYZER",
    "SYMPTOM_ANALYZER_TOOL",
    "TRIAGE_AND_REFERRAL",
    "analyze_symptoms",
    "create_study_timetable",
    "describe_anatomy",
    "generate_discharge_summary",
    "generate_mcqs",
    "generate_mnemonic",
    "generate_study_notes",
    "process_chat_message",
    "retrieve_guidelines",
    "simulate_clinical_case",
    "train_differential_diagnosis",
    "triage_and_referral",
]
