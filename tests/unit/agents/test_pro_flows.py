"""Unit tests for the symptom analyzer, discharge summary and triage-and-referral pipeline."""

from __future__ import annotations

import asyncio

import pytest

from helpers import StubBackend
from medi_assist.agents.pro import select_escalation_diagnosis, triage_and_referral
from medi_assist.agents.symptom_analyzer import (
    CONSULT_PROFESSIONAL_MESSAGE,
    DEFAULT_DISCLAIMER,
    analyze_symptoms,
)
from medi_assist.flows.errors import AgentFailure, ValidationError
from medi_assist.models.symptoms import SymptomAnalyzerOutput

TRIAGE_INPUT = {
    "symptoms": "Productive cough, fever for 3 days, pleuritic chest pain",
    "patientContext": {"age": 62, "sex": "male", "history": "COPD"},
}

SUMMARY = {
    "hospitalCourse": "Referred for suspected pneumonia.",
    "dischargeMedications": [],
    "followUpPlans": ["Chest X-ray"],
    "patientEducation": ["Hydration"],
    "redFlags": ["Worsening breathlessness"],
}


class TestSymptomAnalyzer:
    def test_adds_disclaimer_and_consult_advice(self) -> None:
        backend = StubBackend(
            {"symptomAnalyzerFlow": [{"diagnoses": [{"name": "Viral URTI", "confidence": "Medium"}]}]}
        )
        result = asyncio.run(analyze_symptoms({"symptoms": "Runny nose and sore throat"}, backend=backend))
        assert result.disclaimer == DEFAULT_DISCLAIMER
        assert result.suggested_management == [CONSULT_PROFESSIONAL_MESSAGE]

    def test_keeps_existing_advice(self) -> None:
        output = {
            "diagnoses": [],
            "suggestedManagement": ["Rest", "Consult a healthcare professional if symptoms persist"],
            "disclaimer": "Custom disclaimer.",
        }
        backend = StubBackend({"symptomAnalyzerFlow": [output]})
        result = asyncio.run(analyze_symptoms({"symptoms": "Mild headache after screen use"}, backend=backend))
        assert result.disclaimer == "Custom disclaimer."
        assert len(result.suggested_management) == 2

    def test_patient_context_rendered(self) -> None:
        backend = StubBackend({"symptomAnalyzerFlow": [{"diagnoses": []}]})
        asyncio.run(analyze_symptoms(TRIAGE_INPUT, backend=backend))
        prompt = backend.requests[0].prompt
        assert "Age: 62" in prompt
        assert "Relevant History: COPD" in prompt

    def test_invalid_confidence_tier_is_agent_failure(self) -> None:
        backend = StubBackend({"symptomAnalyzerFlow": [{"diagnoses": [{"name": "X", "confidence": "Certain"}]}]})
        with pytest.raises(AgentFailure):
            asyncio.run(analyze_symptoms({"symptoms": "Runny nose and sore throat"}, backend=backend))


class TestSelectEscalationDiagnosis:
    def test_first_high_in_original_order(self) -> None:
        analysis = SymptomAnalyzerOutput.model_validate(
            {
                "diagnoses": [
                    {"name": "C", "confidence": "Medium"},
                    {"name": "A", "confidence": "High"},
                    {"name": "B", "confidence": "High"},
                ]
            }
        )
        assert select_escalation_diagnosis(analysis).name == "A"

    def test_none_without_high(self) -> None:
        analysis = SymptomAnalyzerOutput.model_validate({"diagnoses": [{"name": "C", "confidence": "Low"}]})
        assert select_escalation_diagnosis(analysis) is None
        assert select_escalation_diagnosis(None) is None


class TestTriageAndReferral:
    def test_high_confidence_produces_referral_from_first_high(self) -> None:
        backend = StubBackend(
            {
                "symptomAnalyzerFlow": [
                    {
                        "diagnoses": [
                            {"name": "Community-Acquired Pneumonia", "confidence": "High", "rationale": "Fever, cough"},
                            {"name": "Pulmonary Embolism", "confidence": "High"},
                        ]
                    }
                ],
                "dischargeSummaryFlow": [SUMMARY],
            }
        )
        result = asyncio.run(triage_and_referral(TRIAGE_INPUT, backend=backend))
        assert result.analysis.diagnoses[0].name == "Community-Acquired Pneumonia"
        assert result.referral_draft is not None
        assert result.referral_draft.hospital_course == "Referred for suspected pneumonia."

        prompt = backend.requests_for("dischargeSummaryFlow")[0].prompt
        assert "Primary Diagnosis: Community-Acquired Pneumonia" in prompt
        assert "Pulmonary Embolism" not in prompt
        assert "Admission/OPD Number: N/A" in prompt
        assert "Patient Age: 62, Sex: male. Rationale for referral: Fever, cough" in prompt

    def test_no_high_confidence_leaves_referral_absent(self) -> None:
        backend = StubBackend(
            {"symptomAnalyzerFlow": [{"diagnoses": [{"name": "Acute Bronchitis", "confidence": "Medium"}]}]}
        )
        result = asyncio.run(triage_and_referral(TRIAGE_INPUT, backend=backend))
        assert result.referral_draft is None
        assert backend.requests_for("dischargeSummaryFlow") == []

    def test_missing_rationale_uses_default_text(self) -> None:
        backend = StubBackend(
            {
                "symptomAnalyzerFlow": [{"diagnoses": [{"name": "Sepsis", "confidence": "High"}]}],
                "dischargeSummaryFlow": [SUMMARY],
            }
        )
        asyncio.run(triage_and_referral({"symptoms": "Fever, confusion and low blood pressure"}, backend=backend))
        prompt = backend.requests_for("dischargeSummaryFlow")[0].prompt
        assert "Patient Age: N/A, Sex: N/A. Rationale for referral: High confidence on initial analysis." in prompt

    def test_referral_failure_propagates(self) -> None:
        backend = StubBackend(
            {
                "symptomAnalyzerFlow": [{"diagnoses": [{"name": "Sepsis", "confidence": "High"}]}],
                "dischargeSummaryFlow": [{**SUMMARY, "hospitalCourse": ""}],
            }
        )
        with pytest.raises(AgentFailure) as exc_info:
            asyncio.run(triage_and_referral(TRIAGE_INPUT, backend=backend))
        assert exc_info.value.flow == "dischargeSummaryFlow"

    def test_short_symptoms_rejected(self) -> None:
        with pytest.raises(ValidationError):
            asyncio.run(triage_and_referral({"symptoms": "cough"}, backend=StubBackend()))
