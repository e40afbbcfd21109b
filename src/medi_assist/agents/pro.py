"""
Professional tools: discharge summary drafting and the triage-and-referral
pipeline.

Triage runs the symptom analyzer, then drafts a referral with the discharge
summary flow only when the analysis contains a diagnosis at confidence "High".
The diagnosis used is the first "High" entry in the order the model returned
them, not the most confident or highest ranked one.
"""

from __future__ import annotations

from typing import Any, Optional

from medi_assist.agents.symptom_analyzer import SYMPTOM_ANALYZER
from medi_assist.flows.orchestrator import (
    OrchestrationStep,
    Orchestrator,
    StepContext,
    first_matching,
)
from medi_assist.flows.registry import FlowSpec, GenerationConfig, validate
from medi_assist.flows.unit import FlowUnit
from medi_assist.inference.base import ModelBackend
from medi_assist.models.pro import DischargeSummaryInput, DischargeSummaryOutput, TriageAndReferralOutput
from medi_assist.models.symptoms import DiagnosisItem, SymptomAnalyzerInput, SymptomAnalyzerOutput

ESCALATION_TIER = "High"

DISCHARGE_SUMMARY_PROMPT = """You are an expert medical AI assistant helping a doctor draft a discharge summary.
Patient Details:
- Name: {{{patientName}}} (if provided)
- Age: {{{patientAge}}} (if provided)
- Admission/OPD Number: {{{admissionNumber}}}

Clinical Anchors for this Episode:
- Primary Diagnosis: {{{primaryDiagnosis}}}
{{#if keySymptomsOrProcedure}}- Key Symptoms/Procedure: {{{keySymptomsOrProcedure}}}{{/if}}
{{#if additionalContext}}- Additional Context from Doctor: {{{additionalContext}}}{{/if}}

Based on the above information, please draft the following sections for the discharge summary.
This is a DRAFT and will be reviewed and finalized by the supervising doctor.

1.  Hospital Course ('hospitalCourse'): reason for admission, key findings, treatments, response, and condition at discharge.
2.  Discharge Medications ('dischargeMedications'): drug name, dose, route, frequency, and duration.
3.  Follow-up Plans ('followUpPlans'): appointments, further tests, or monitoring.
4.  Patient Education ('patientEducation'): condition, medications, lifestyle, or self-care.
5.  Red Flags ('redFlags'): symptoms that warrant urgent medical attention.
6.  Notes for Doctor ('notesForDoctor', optional): considerations or reminders for the reviewing doctor.
"""

DISCHARGE_SUMMARY_GENERATOR = FlowUnit(
    FlowSpec(
        name="dischargeSummaryFlow",
        input_schema=DischargeSummaryInput,
        output_schema=DischargeSummaryOutput,
        generation_config=GenerationConfig(temperature=0.4),
    ),
    DISCHARGE_SUMMARY_PROMPT,
    non_empty=("hospital_course",),
    failure_message="Failed to generate discharge summary draft. Please try again.",
)


async def generate_discharge_summary(
    value: Any, *, backend: Optional[ModelBackend] = None
) -> DischargeSummaryOutput:
    return await DISCHARGE_SUMMARY_GENERATOR.invoke(value, backend=backend)


# -----------------------------------------------------------------------------
# Triage and referral
# -----------------------------------------------------------------------------


def select_escalation_diagnosis(analysis: Optional[SymptomAnalyzerOutput]) -> Optional[DiagnosisItem]:
    """First diagnosis at the escalation tier, in original order."""
    if analysis is None:
        return None
    return first_matching(analysis.diagnoses, lambda d: d.confidence == ESCALATION_TIER)


def _has_escalation_diagnosis(context: StepContext) -> bool:
    return select_escalation_diagnosis(context.previous) is not None


def referral_input(context: StepContext) -> DischargeSummaryInput:
    """Build the referral draft request from the triage input and the selected diagnosis."""
    diagnosis = select_escalation_diagnosis(context.previous)
    if diagnosis is None:
        raise ValueError("referral_input called without an escalation diagnosis")
    triage_input: SymptomAnalyzerInput = context.initial_input
    patient = triage_input.patient_context
    age = patient.age if patient and patient.age else "N/A"
    sex = patient.sex if patient and patient.sex else "N/A"
    rationale = diagnosis.rationale or "High confidence on initial analysis."
    return DischargeSummaryInput(
        patient_name="Patient",
        admission_number="N/A",
        primary_diagnosis=diagnosis.name,
        key_symptoms_or_procedure=triage_input.symptoms,
        additional_context=f"Patient Age: {age}, Sex: {sex}. Rationale for referral: {rationale}",
    )


TRIAGE_AND_REFERRAL = Orchestrator(
    "triageAndReferralFlow",
    [
        OrchestrationStep(name="analysis", flow=SYMPTOM_ANALYZER),
        OrchestrationStep(
            name="referral_draft",
            flow=DISCHARGE_SUMMARY_GENERATOR,
            derive_input=referral_input,
            predicate=_has_escalation_diagnosis,
        ),
    ],
)


async def triage_and_referral(value: Any, *, backend: Optional[ModelBackend] = None) -> TriageAndReferralOutput:
    """Analyse symptoms and, for a high-confidence diagnosis, draft a referral."""
    triage_input = validate(SymptomAnalyzerInput, value)
    result = await TRIAGE_AND_REFERRAL.run(triage_input, backend=backend)
    return validate(
        TriageAndReferralOutput,
        {"analysis": result.outputs["analysis"], "referral_draft": result.outputs["referral_draft"]},
    )
