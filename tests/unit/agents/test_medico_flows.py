"""Unit tests for the study tool flows."""

from __future__ import annotations

import asyncio

import pytest

from helpers import StubBackend
from medi_assist.agents.medico import (
    create_study_timetable,
    describe_anatomy,
    generate_mcqs,
    generate_mnemonic,
    generate_study_notes,
    simulate_clinical_case,
    train_differential_diagnosis,
)
from medi_assist.flows.errors import AgentFailure, ValidationError


def _mcq(question: str, correct: int = 0) -> dict:
    return {
        "question": question,
        "options": [{"text": f"opt{i}", "isCorrect": i == correct} for i in range(4)],
        "explanation": "because",
    }


class TestMnemonics:
    def test_empty_mnemonic_is_agent_failure(self) -> None:
        backend = StubBackend({"medicoMnemonicsGeneratorFlow": [{"mnemonic": "", "explanation": "..."}]})
        with pytest.raises(AgentFailure) as exc_info:
            asyncio.run(generate_mnemonic({"topic": "Cranial Nerves (Order)"}, backend=backend))
        assert exc_info.value.user_message == (
            "An unexpected error occurred while generating the mnemonic. Please try again."
        )

    def test_topic_generated_always_echoes_input(self) -> None:
        backend = StubBackend(
            {
                "medicoMnemonicsGeneratorFlow": [
                    {"mnemonic": "Oh Oh Oh...", "explanation": "...", "topicGenerated": "WRONG"}
                ]
            }
        )
        result = asyncio.run(generate_mnemonic({"topic": "Cranial Nerves (Order)"}, backend=backend))
        assert result.mnemonic == "Oh Oh Oh..."
        assert result.topic_generated == "Cranial Nerves (Order)"
        request = backend.requests[0]
        assert "Given the topic or list: Cranial Nerves (Order)" in request.prompt
        assert request.temperature == 0.7

    def test_short_topic_is_rejected_before_generation(self) -> None:
        backend = StubBackend()
        with pytest.raises(ValidationError):
            asyncio.run(generate_mnemonic({"topic": "ab"}, backend=backend))
        assert backend.requests == []


class TestDifferentialDiagnosis:
    def test_returns_diagnoses(self) -> None:
        backend = StubBackend(
            {
                "medicoDifferentialDiagnosisTrainerFlow": [
                    {"potentialDiagnoses": ["Migraine", "Tension headache"], "explanation": "Pattern of pain."}
                ]
            }
        )
        result = asyncio.run(
            train_differential_diagnosis({"symptoms": "Unilateral throbbing headache with photophobia"}, backend=backend)
        )
        assert result.potential_diagnoses == ["Migraine", "Tension headache"]
        assert backend.requests[0].temperature == 0.5

    def test_empty_list_is_agent_failure(self) -> None:
        backend = StubBackend(
            {"medicoDifferentialDiagnosisTrainerFlow": [{"potentialDiagnoses": [], "explanation": "none"}]}
        )
        with pytest.raises(AgentFailure):
            asyncio.run(train_differential_diagnosis({"symptoms": "Fever, rash and joint pain"}, backend=backend))


class TestMCQs:
    def test_count_is_rendered_and_topic_echoed(self) -> None:
        backend = StubBackend({"medicoMCQGeneratorFlow": [{"mcqs": [_mcq("Q1"), _mcq("Q2", correct=2)]}]})
        result = asyncio.run(generate_mcqs({"topic": "Hypertension", "count": 2}, backend=backend))
        assert len(result.mcqs) == 2
        assert result.mcqs[1].options[2].is_correct
        assert result.topic_generated == "Hypertension"
        assert "Generate 2 high-quality" in backend.requests[0].prompt

    def test_question_with_two_correct_options_fails(self) -> None:
        bad = _mcq("Q1")
        bad["options"][1]["isCorrect"] = True
        backend = StubBackend({"medicoMCQGeneratorFlow": [{"mcqs": [bad]}]})
        with pytest.raises(AgentFailure):
            asyncio.run(generate_mcqs({"topic": "Hypertension"}, backend=backend))

    def test_string_boolean_in_reply_is_agent_failure(self) -> None:
        bad = _mcq("Q1")
        bad["options"][0]["isCorrect"] = "true"
        backend = StubBackend({"medicoMCQGeneratorFlow": [{"mcqs": [bad]}]})
        with pytest.raises(AgentFailure):
            asyncio.run(generate_mcqs({"topic": "Hypertension"}, backend=backend))

    def test_count_out_of_range_is_caller_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(generate_mcqs({"topic": "Hypertension", "count": 11}, backend=StubBackend()))
        assert exc_info.value.field == "count"


class TestStudyNotes:
    def test_notes(self) -> None:
        backend = StubBackend(
            {"medicoStudyNotesFlow": [{"notes": "# Asthma\n- Reversible airway obstruction", "summaryPoints": ["a"]}]}
        )
        result = asyncio.run(generate_study_notes({"topic": "Asthma"}, backend=backend))
        assert result.notes.startswith("# Asthma")
        assert result.summary_points == ["a"]
        assert backend.requests[0].temperature == 0.3


TIMETABLE_INPUT = {
    "examName": "Final MBBS",
    "examDate": "2025-12-01",
    "subjects": ["Medicine", "Surgery", "Pediatrics"],
    "studyHoursPerWeek": 30,
}


class TestStudyTimetable:
    def test_subjects_rendered_as_list(self) -> None:
        backend = StubBackend({"medicoStudyTimetableFlow": [{"timetable": "| Week | Subject |"}]})
        result = asyncio.run(create_study_timetable(TIMETABLE_INPUT, backend=backend))
        assert result.timetable == "| Week | Subject |"
        request = backend.requests[0]
        assert "Subjects: Medicine, Surgery, Pediatrics\n" in request.prompt
        assert "Study Hours Per Week: 30" in request.prompt
        assert request.temperature == 0.5

    def test_blank_timetable_is_agent_failure(self) -> None:
        backend = StubBackend({"medicoStudyTimetableFlow": [{"timetable": "  "}]})
        with pytest.raises(AgentFailure) as exc_info:
            asyncio.run(create_study_timetable(TIMETABLE_INPUT, backend=backend))
        assert "study timetable" in exc_info.value.user_message

    def test_no_subjects_is_caller_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(create_study_timetable({**TIMETABLE_INPUT, "subjects": []}, backend=StubBackend()))
        assert exc_info.value.field == "subjects"


class TestAnatomyVisualizer:
    def test_description_and_related_structures(self) -> None:
        backend = StubBackend(
            {
                "medicoAnatomyVisualizerFlow": [
                    {"description": "Network of nerves from C5-T1.", "relatedStructures": ["Axillary artery"]}
                ]
            }
        )
        result = asyncio.run(describe_anatomy({"anatomicalStructure": "Brachial Plexus"}, backend=backend))
        assert result.description.startswith("Network of nerves")
        assert result.image_url is None
        assert result.related_structures == ["Axillary artery"]
        assert "Given the anatomical structure: Brachial Plexus" in backend.requests[0].prompt

    def test_empty_description_is_agent_failure(self) -> None:
        backend = StubBackend({"medicoAnatomyVisualizerFlow": [{"description": ""}]})
        with pytest.raises(AgentFailure):
            asyncio.run(describe_anatomy({"anatomicalStructure": "Brachial Plexus"}, backend=backend))


class TestClinicalCase:
    def test_new_case_uses_topic_branch(self) -> None:
        backend = StubBackend(
            {
                "medicoClinicalCaseFlow": [
                    {"caseId": "case-12345", "prompt": "A 2-year-old child...", "isCompleted": False}
                ]
            }
        )
        result = asyncio.run(simulate_clinical_case({"topic": "Severe Acute Malnutrition"}, backend=backend))
        assert result.case_id == "case-12345"
        assert result.is_completed is False
        prompt = backend.requests[0].prompt
        assert "New Case Request." in prompt
        assert "Current Case ID" not in prompt
        assert backend.requests[0].temperature == 0.6

    def test_continued_case_keeps_callers_case_id(self) -> None:
        backend = StubBackend(
            {
                "medicoClinicalCaseFlow": [
                    {
                        "caseId": "case-other",
                        "prompt": "Next: what investigations?",
                        "feedback": "Good start.",
                        "isCompleted": False,
                    }
                ]
            }
        )
        result = asyncio.run(
            simulate_clinical_case({"caseId": "case-1", "userResponse": "Check airway"}, backend=backend)
        )
        assert result.case_id == "case-1"
        assert result.feedback == "Good start."
        assert "Current Case ID: case-1" in backend.requests[0].prompt

    @pytest.mark.parametrize(
        "reply",
        [
            {"caseId": "", "prompt": "Question?", "isCompleted": False},
            {"caseId": "case-1", "prompt": "", "isCompleted": False},
            {"caseId": "case-1", "prompt": "Question?"},
        ],
    )
    def test_missing_case_id_or_prompt_is_agent_failure(self, reply: dict) -> None:
        backend = StubBackend({"medicoClinicalCaseFlow": [reply]})
        with pytest.raises(AgentFailure):
            asyncio.run(simulate_clinical_case({"topic": "Sepsis"}, backend=backend))

    @pytest.mark.parametrize("value", [{}, {"caseId": "case-1"}])
    def test_needs_topic_or_case_with_response(self, value: dict) -> None:
        backend = StubBackend()
        with pytest.raises(ValidationError):
            asyncio.run(simulate_clinical_case(value, backend=backend))
        assert backend.requests == []
