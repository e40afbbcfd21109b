"""
Chat assistant.

The chat flow is conversational: its model may call the symptom analyzer tool
when the user describes symptoms. process_chat_message() is the application
entry point; when the flow fails it falls back, explicitly, to a direct model
call with a simplified prompt (no tools), and to a fixed apology if that fails
too.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from medi_assist.agents.symptom_analyzer import SYMPTOM_ANALYZER
from medi_assist.flows.errors import FlowError
from medi_assist.flows.registry import FlowSpec, GenerationConfig, validate
from medi_assist.flows.tools import ConversationalFlowUnit, Tool
from medi_assist.inference.base import ModelBackend
from medi_assist.inference.direct import DirectTransport
from medi_assist.models.chat import ChatMessageInput, ChatMessageOutput

logger = structlog.get_logger(__name__)

TECHNICAL_DIFFICULTIES_RESPONSE = (
    "I'm currently experiencing technical difficulties and cannot process your request. "
    "Please try again later."
)

SYMPTOM_ANALYZER_TOOL = Tool.from_flow(
    SYMPTOM_ANALYZER,
    name="symptomAnalyzer",
    description=(
        "Analyzes a list of symptoms to provide potential medical considerations. Use this tool when a "
        "user explicitly describes medical symptoms they are experiencing or asks for an analysis of symptoms."
    ),
)

CHAT_PROMPT = """You are MediAssistant, a helpful and friendly AI medical assistant.
Your primary goal is to assist users with their medical queries.

User's message: {{{message}}}

Instructions:
1. If the user's message clearly describes medical symptoms they are experiencing (e.g., "I have a fever and a cough"), use the 'symptomAnalyzer' tool to analyze these symptoms.
   - When presenting the results from the 'symptomAnalyzer' tool, clearly state that these are potential considerations and not a diagnosis, and advise consulting a medical professional.
   - Format the potential diagnoses from the tool in a clear, readable way (e.g., a list).
2. If the user's message is a general question, a greeting, or anything not describing specific medical symptoms for analysis, respond conversationally and helpfully without using the tool.
3. Be empathetic and maintain a professional tone.
4. If the symptomAnalyzer tool returns no specific diagnoses, inform the user that no specific considerations could be determined based on the input and still advise consulting a doctor.

Put your reply to the user in the 'response' field.
"""

CHAT_FLOW = ConversationalFlowUnit(
    FlowSpec(
        name="chatFlow",
        input_schema=ChatMessageInput,
        output_schema=ChatMessageOutput,
        generation_config=GenerationConfig(temperature=0.5),
    ),
    CHAT_PROMPT,
    tools=[SYMPTOM_ANALYZER_TOOL],
    non_empty=("response",),
    failure_message="I'm sorry, I encountered an issue trying to process that. Could you please try rephrasing?",
)


def direct_prompt(message: str) -> str:
    return (
        "You are MediAssistant, a helpful and friendly AI medical assistant. "
        f'The user says: "{message}". Respond conversationally and helpfully.'
    )


async def process_chat_message(
    value: Any,
    *,
    backend: Optional[ModelBackend] = None,
    transport: Optional[DirectTransport] = None,
) -> ChatMessageOutput:
    """
    Answer a chat message.

    Raises ValidationError for an invalid message; never raises for model,
    transport or configuration failures (e.g. no API key).
    """
    chat_input = validate(ChatMessageInput, value)
    try:
        return await CHAT_FLOW.invoke(chat_input, backend=backend)
    except FlowError as e:
        logger.warning("chat_flow_failed_trying_direct_call", error_type=type(e).__name__)

    try:
        transport = transport or DirectTransport()
        text = await transport.call_direct(direct_prompt(chat_input.message))
    except FlowError as e:
        logger.error("chat_direct_call_failed", error=str(e), error_type=type(e).__name__)
        return ChatMessageOutput(response=TECHNICAL_DIFFICULTIES_RESPONSE)
    return ChatMessageOutput(response=text)
