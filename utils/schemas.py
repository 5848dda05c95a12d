"""
Pydantic request / response schemas.

Request fields are optional; routes answer a missing value with their own
400 message.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class UserIdRequest(BaseModel):
    user_id: Optional[str] = None


class AccessTokenResponse(BaseModel):
    access_token: str


class TopArtistsPromptResponse(BaseModel):
    artists: List[str]
    prompt: str


class EarlyAccessRequest(BaseModel):
    email: Optional[str] = None


class EarlyAccessResponse(BaseModel):
    id: int
    email: str
    created_at: datetime
