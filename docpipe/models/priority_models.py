"""
docpipe/models/priority_models.py

Pydantic DTOs for the task-priority flow — request body and response.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PriorityRequest(BaseModel):
    """
    JSON body for POST /suggest-priority/.

        { "title": "Replace scaffold clamps", "description": "Two clamps cracked on level 3." }
    """

    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=4000)

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title cannot be empty.")
        return v.strip()


class PriorityResponse(BaseModel):
    """
    Successful response for POST /suggest-priority/.

        { "priority": "High" }
    """

    priority: Literal["Low", "Medium", "High"]
