"""
Symptom analyzer flow.

Takes user-described symptoms (plus optional patient context) and returns
potential differential diagnoses with confidence tiers, suggested
investigations and initial management. Every result carries a disclaimer and a
"consult a healthcare professional" management item, whatever the model said.
"""

from __future__ import annotations

from typing import Any, Optional

from medi_assist.flows.registry import FlowSpec
from medi_assist.flows.unit import FlowUnit
from medi_assist.inference.base import ModelBackend
from medi_assist.models.symptoms import SymptomAnalyzerInput, SymptomAnalyzerOutput

DEFAULT_DISCLAIMER = (
    "This information is for informational purposes only and not a substitute for professional "
    "medical advice. Always consult with a qualified healthcare provider for any health concerns "
    "or before making any decisions related to your health or treatment."
)
CONSULT_PROFESSIONAL_MESSAGE = (
    "It is crucial to consult a healthcare professional for an accurate diagnosis and appropriate "
    "treatment plan."
)
_CONSULT_MARKERS = ("consult a healthcare professional", "consult a medical professional")

SYMPTOM_ANALYZER_PROMPT = """You are an AI medical expert. Based on the symptoms and patient context provided, generate:
1.  A list of potential differential diagnoses. For each diagnosis, include:
    - 'name': The name of the condition.
    - 'confidence': Your qualitative confidence level (High, Medium, Low, or Possible).
    - 'rationale': Brief supporting evidence or reasoning, and mention any red flag symptoms associated with urgent/serious differentials.
2.  A prioritized list of suggested investigations for the top few likely diagnoses, each with 'name' and a brief 'rationale'.
3.  A list of suggested initial management steps or considerations for the most likely diagnoses. Mention if specific guidelines (e.g., WHO, NICE) should be consulted.

Symptoms: {{{symptoms}}}
{{#if patientContext}}
Patient Context:
  Age: {{{patientContext.age}}}
  Sex: {{{patientContext.sex}}}
  Relevant History: {{{patientContext.history}}}
{{/if}}

Output Format:
'diagnoses' should be an array of objects, each with 'name', optional 'confidence', and optional 'rationale'.
'suggestedInvestigations' should be an array of objects, each with 'name' and optional 'rationale'.
'suggestedManagement' should be an array of strings.

Example for diagnoses array:
[
  { "name": "Community-Acquired Pneumonia", "confidence": "High", "rationale": "Supported by cough, fever, and reported crackles. Red flags: severe dyspnea, SpO2 <90%." },
  { "name": "Acute Bronchitis", "confidence": "Medium", "rationale": "Cough present, but fever might be low grade or absent. Usually viral." },
  { "name": "Pulmonary Embolism", "confidence": "Low", "rationale": "Consider if sudden onset dyspnea, pleuritic chest pain, or risk factors present." }
]

Always include a disclaimer that this information is for informational purposes only and not a substitute for professional medical advice.
"""


def ensure_safety_advice(flow_input: Any, output: SymptomAnalyzerOutput) -> SymptomAnalyzerOutput:
    """Add the default disclaimer and the consult-a-professional advice when missing."""
    management = list(output.suggested_management or [])
    if not any(marker in m.lower() for m in management for marker in _CONSULT_MARKERS):
        management.append(CONSULT_PROFESSIONAL_MESSAGE)
    return output.model_copy(
        update={
            "disclaimer": output.disclaimer or DEFAULT_DISCLAIMER,
            "suggested_management": management,
        }
    )


SYMPTOM_ANALYZER = FlowUnit(
    FlowSpec(
        name="symptomAnalyzerFlow",
        input_schema=SymptomAnalyzerInput,
        output_schema=SymptomAnalyzerOutput,
    ),
    SYMPTOM_ANALYZER_PROMPT,
    post_process=ensure_safety_advice,
    failure_message="We could not analyze these symptoms right now. Please try again.",
)


async def analyze_symptoms(value: Any, *, backend: Optional[ModelBackend] = None) -> SymptomAnalyzerOutput:
    return await SYMPTOM_ANALYZER.invoke(value, backend=backend)
