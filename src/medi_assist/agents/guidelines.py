"""Clinical guideline retrieval flow."""

from __future__ import annotations

from typing import Any, Optional

from medi_assist.flows.registry import FlowSpec
from medi_assist.flows.unit import FlowUnit
from medi_assist.inference.base import ModelBackend
from medi_assist.models.guidelines import GuidelineRetrievalInput, GuidelineRetrievalOutput

GUIDELINE_RETRIEVAL_PROMPT = """You are a medical expert. Based on the following query, retrieve a list of relevant and up-to-date clinical guidelines or treatment protocols.
For each guideline or protocol, provide a clear title, a concise summary of its key points, and identify its source (e.g. "WHO 2023", "NICE NG136", "AHA/ACC Guidelines 2022").
Prioritize guidelines from reputable sources like WHO, NICE, AHA/ACC, or other major national or international medical authorities.
If specific context is provided, use it to refine your search.

Query: {{{query}}}
{{#if context}}
Context: {{{context}}}
{{/if}}

The 'results' field is an array of objects, each with 'title', 'summary' and 'source'.
If no guidelines are found, return an empty array for 'results'.
"""

# An empty result list is a valid answer, so no field is declared non-empty.
GUIDELINE_RETRIEVAL = FlowUnit(
    FlowSpec(
        name="guidelineRetrievalFlow",
        input_schema=GuidelineRetrievalInput,
        output_schema=GuidelineRetrievalOutput,
    ),
    GUIDELINE_RETRIEVAL_PROMPT,
    failure_message="Failed to retrieve guidelines. Please try again.",
)


async def retrieve_guidelines(value: Any, *, backend: Optional[ModelBackend] = None) -> GuidelineRetrievalOutput:
    return await GUIDELINE_RETRIEVAL.invoke(value, backend=backend)
