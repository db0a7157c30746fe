"""Argument and result models for the queryWebsite tool."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class QueryWebsiteArguments(BaseModel):
    query: str = Field(min_length=1, description="things you want to know about the website")
    urls: List[str] = Field(description="urls of the website, you can use urls appearing in the conversation")


class QueryWebsiteResult(BaseModel):
    answers: List[str] = Field(default_factory=list)

    @property
    def bot_readable_content(self) -> str:
        """Answers as one block of text for the calling model."""
        return "\n".join(self.answers)
