"""
Study tool flows for medical students: mnemonics, differential diagnosis
trainer, MCQ generator, study notes, study timetable, anatomy descriptions
and clinical case simulation.
"""

from __future__ import annotations

from typing import Any, Optional

from medi_assist.flows.registry import FlowSpec, GenerationConfig
from medi_assist.flows.unit import FlowUnit
from medi_assist.inference.base import ModelBackend
from medi_assist.models.medico import (
    AnatomyVisualizerInput,
    AnatomyVisualizerOutput,
    ClinicalCaseInput,
    ClinicalCaseOutput,
    DifferentialDiagnosisInput,
    DifferentialDiagnosisOutput,
    MCQGeneratorInput,
    MCQGeneratorOutput,
    MnemonicsInput,
    MnemonicsOutput,
    StudyNotesInput,
    StudyNotesOutput,
    StudyTimetableInput,
    StudyTimetableOutput,
)

# -----------------------------------------------------------------------------
# Mnemonics
# -----------------------------------------------------------------------------

MNEMONICS_PROMPT = """You are an AI expert in creating catchy and effective mnemonics for medical students.
Given the topic or list: {{{topic}}}

Generate a creative and easy-to-remember mnemonic.
Also, provide a brief explanation of what each part of the mnemonic stands for.
The 'mnemonic' field should contain the mnemonic itself.
The 'explanation' field should detail its components.
The 'topicGenerated' field should reflect the input topic.

Example for topic "Cranial Nerves (Order)":
Mnemonic: "Oh Oh Oh To Touch And Feel Very Good Velvet, Ah Heaven"
Explanation:
  Oh: Olfactory (I)
  Oh: Optic (II)
  Oh: Oculomotor (III)
  To: Trochlear (IV)
  Touch: Trigeminal (V)
  And: Abducens (VI)
  Feel: Facial (VII)
  Very: Vestibulocochlear (VIII)
  Good: Glossopharyngeal (IX)
  Velvet: Vagus (X)
  Ah: Accessory (XI)
  Heaven: Hypoglossal (XII)
"""

MNEMONICS_GENERATOR = FlowUnit(
    FlowSpec(
        name="medicoMnemonicsGeneratorFlow",
        input_schema=MnemonicsInput,
        output_schema=MnemonicsOutput,
        generation_config=GenerationConfig(temperature=0.7),
    ),
    MNEMONICS_PROMPT,
    echo_fields={"topic_generated": "topic"},
    non_empty=("mnemonic",),
    failure_message="An unexpected error occurred while generating the mnemonic. Please try again.",
)


async def generate_mnemonic(value: Any, *, backend: Optional[ModelBackend] = None) -> MnemonicsOutput:
    return await MNEMONICS_GENERATOR.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# Differential diagnosis trainer
# -----------------------------------------------------------------------------

DIFFERENTIAL_DIAGNOSIS_PROMPT = """You are an AI medical education tool designed to help students practice differential diagnosis.
Given the following symptoms or clinical scenario:
"{{{symptoms}}}"

Based on these symptoms, provide a list of potential differential diagnoses.
Also, include a brief explanation or key distinguishing features for why these diagnoses are considered.
This is for educational purposes.

'potentialDiagnoses' should be an array of strings.
'explanation' should be a string summarizing the rationale.
"""

DIFFERENTIAL_DIAGNOSIS_TRAINER = FlowUnit(
    FlowSpec(
        name="medicoDifferentialDiagnosisTrainerFlow",
        input_schema=DifferentialDiagnosisInput,
        output_schema=DifferentialDiagnosisOutput,
        generation_config=GenerationConfig(temperature=0.5),
    ),
    DIFFERENTIAL_DIAGNOSIS_PROMPT,
    non_empty=("potential_diagnoses",),
    failure_message="Failed to generate differential diagnoses. Please try again.",
)


async def train_differential_diagnosis(
    value: Any, *, backend: Optional[ModelBackend] = None
) -> DifferentialDiagnosisOutput:
    return await DIFFERENTIAL_DIAGNOSIS_TRAINER.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# MCQ generator
# -----------------------------------------------------------------------------

MCQ_PROMPT = """You are an expert medical educator. Generate {{count}} high-quality multiple-choice questions on the topic: {{{topic}}}.

Each question must have exactly four options, exactly one of which is correct ('isCorrect': true).
Include a brief 'explanation' of why the correct answer is correct.
The 'topicGenerated' field should reflect the input topic.
"""

MCQ_GENERATOR = FlowUnit(
    FlowSpec(
        name="medicoMCQGeneratorFlow",
        input_schema=MCQGeneratorInput,
        output_schema=MCQGeneratorOutput,
        generation_config=GenerationConfig(temperature=0.5),
    ),
    MCQ_PROMPT,
    echo_fields={"topic_generated": "topic"},
    non_empty=("mcqs",),
    failure_message="An unexpected error occurred while generating MCQs. Please try again.",
)


async def generate_mcqs(value: Any, *, backend: Optional[ModelBackend] = None) -> MCQGeneratorOutput:
    return await MCQ_GENERATOR.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# Study notes
# -----------------------------------------------------------------------------

STUDY_NOTES_PROMPT = """You are an AI assistant helping medical students prepare concise study notes.
Topic: {{{topic}}}

Write clear, well-structured notes with headings and bullet points covering definition,
etiology, pathophysiology, clinical features, investigations and management where relevant.
Also provide 3-5 key 'summaryPoints' for quick revision.
"""

STUDY_NOTES_GENERATOR = FlowUnit(
    FlowSpec(
        name="medicoStudyNotesFlow",
        input_schema=StudyNotesInput,
        output_schema=StudyNotesOutput,
        generation_config=GenerationConfig(temperature=0.3),
    ),
    STUDY_NOTES_PROMPT,
    non_empty=("notes",),
    failure_message="An unexpected error occurred while generating study notes. Please try again.",
)


async def generate_study_notes(value: Any, *, backend: Optional[ModelBackend] = None) -> StudyNotesOutput:
    return await STUDY_NOTES_GENERATOR.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# Study timetable
# -----------------------------------------------------------------------------

STUDY_TIMETABLE_PROMPT = """You are an AI assistant specializing in helping medical students plan their study schedules.
Given the following details:
Exam Name: {{{examName}}}
Exam Date: {{{examDate}}}
Subjects: {{#each subjects}}{{{this}}}{{#unless @last}}, {{/unless}}{{/each}}
Study Hours Per Week: {{{studyHoursPerWeek}}}

Create a structured and realistic study timetable. Distribute study hours appropriately among subjects.
The output should be a clear, organized timetable, for example a weekly breakdown in Markdown format.
Ensure the timetable helps the student cover all subjects effectively before the exam date.
Provide the timetable in the 'timetable' field of the output.
"""

STUDY_TIMETABLE_CREATOR = FlowUnit(
    FlowSpec(
        name="medicoStudyTimetableFlow",
        input_schema=StudyTimetableInput,
        output_schema=StudyTimetableOutput,
        generation_config=GenerationConfig(temperature=0.5),
    ),
    STUDY_TIMETABLE_PROMPT,
    non_empty=("timetable",),
    failure_message="Failed to generate study timetable. Please try again.",
)


async def create_study_timetable(value: Any, *, backend: Optional[ModelBackend] = None) -> StudyTimetableOutput:
    return await STUDY_TIMETABLE_CREATOR.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# Anatomy visualizer
# -----------------------------------------------------------------------------

ANATOMY_PROMPT = """You are an AI medical educator specializing in anatomy.
Given the anatomical structure: {{{anatomicalStructure}}}

Provide a detailed description covering:
1. Location
2. Key features/parts
3. Primary functions
4. Important clinical correlations or relevance
5. Optionally, a few related structures

The 'description' field should be comprehensive.
'imageUrl' can be omitted or set to null; no image is generated.
'relatedStructures' should be an array of strings.
"""

ANATOMY_VISUALIZER = FlowUnit(
    FlowSpec(
        name="medicoAnatomyVisualizerFlow",
        input_schema=AnatomyVisualizerInput,
        output_schema=AnatomyVisualizerOutput,
        generation_config=GenerationConfig(temperature=0.3),
    ),
    ANATOMY_PROMPT,
    non_empty=("description",),
    failure_message="Failed to get anatomy description. Please try again.",
)


async def describe_anatomy(value: Any, *, backend: Optional[ModelBackend] = None) -> AnatomyVisualizerOutput:
    return await ANATOMY_VISUALIZER.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# Clinical case simulation
# -----------------------------------------------------------------------------

CLINICAL_CASE_PROMPT = """You are an AI tutor managing a clinical case simulation for a medical student.

{{#if caseId}}
Current Case ID: {{{caseId}}}
Student's last response: {{{userResponse}}}
---
Review the student's response in the context of this case.
Provide feedback on the response in 'feedback'.
Present the next step or question of the simulation in 'prompt'.
Set 'isCompleted' to true and fill 'summary' if the case has concluded.
{{else}}
New Case Request.
Topic: {{{topic}}}
---
Start a new clinical case simulation on this topic.
Provide an initial patient presentation and the first question for the student in 'prompt'.
Set 'isCompleted' to false and assign a new unique 'caseId' (e.g. "case-12345").
{{/if}}

'caseId', 'prompt' and 'isCompleted' must always be provided.
'feedback' and 'summary' can be null if not applicable.
"""


def keep_case_id(flow_input: ClinicalCaseInput, output: ClinicalCaseOutput) -> ClinicalCaseOutput:
    """A continued case keeps the caller's caseId whatever the model returned."""
    if flow_input.case_id:
        return output.model_copy(update={"case_id": flow_input.case_id})
    return output


CLINICAL_CASE_SIMULATOR = FlowUnit(
    FlowSpec(
        name="medicoClinicalCaseFlow",
        input_schema=ClinicalCaseInput,
        output_schema=ClinicalCaseOutput,
        generation_config=GenerationConfig(temperature=0.6),
    ),
    CLINICAL_CASE_PROMPT,
    non_empty=("case_id", "prompt"),
    post_process=keep_case_id,
    failure_message="Failed to process the clinical case simulation. Please try again.",
)


async def simulate_clinical_case(value: Any, *, backend: Optional[ModelBackend] = None) -> ClinicalCaseOutput:
    return await CLINICAL_CASE_SIMULATOR.invoke(value, backend=backend)
