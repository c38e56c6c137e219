"""
Chat models for the completion path.
"""

from enum import Enum
from typing import List, Optional
from pydantic import Field, field_validator

from talentrank.models.base import TalentRankBaseModel
from talentrank.models.ranking import ResumeMatch


class Role(str, Enum):
    """Valid roles in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(TalentRankBaseModel):
    """
    Individual message sent to the completion provider.
    OpenAI format compatible.
    """

    role: Role = Field(..., description="Sender's role")
    content: str = Field(..., min_length=1, description="Message content")

    @field_validator("content")
    @classmethod
    def validate_content_not_empty(cls, v: str) -> str:
        """Ensures content is not empty."""
        if not v.strip():
            raise ValueError("Content cannot be empty")
        return v


class ChatMessage(Message):
    """
    Message of the conversation history.

    Assistant turns that answered a matching request keep the matches they
    showed, so follow-up questions can refer to them.
    """

    matches: Optional[List[ResumeMatch]] = Field(None, description="Matches shown with this turn")
