"""Pydantic schemas for the chat assistant."""

from pydantic import Field

from medi_assist.models.base import WireModel


class ChatMessageInput(WireModel):
    message: str = Field(..., min_length=1, description="The user message in the chat conversation.")


class ChatMessageOutput(WireModel):
    response: str = Field(..., description="The assistant's response to the user message.")
