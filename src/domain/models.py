from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, ConfigDict

class Developer(BaseModel):
    """
    Immutable domain model representing a developer profile.
    The owner is captured once, at creation, and is the sole key for later updates.
    """
    # Enforces immutability: updates produce a new record via model_copy.
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Generated unique identifier")
    owner: str = Field(..., description="Identity of the caller that created the profile")
    username: str = Field(..., description="GitHub username, unique across developers")
    email: str = Field(..., description="Contact email address")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Timestamp of the last update")


class ProgrammingLanguage(BaseModel):
    """Immutable catalog entry for a programming language. Create-only."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Generated unique identifier")
    name: str = Field(..., description="Language name, unique across the catalog")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Always empty; languages are never updated")


class Repo(BaseModel):
    """
    Immutable domain model representing a code repository record.
    developer_id and language_id are informational references and may dangle.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Generated unique identifier")
    owner: str = Field(..., description="Identity of the caller that created the repo")
    developer_id: str = Field(..., description="Referenced Developer.id, not checked for existence")
    language_id: str = Field(..., description="Referenced ProgrammingLanguage.id, not checked for existence")
    name: str = Field(..., description="Repository name, unique across repos")
    description: str = Field(..., description="Free-form description")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Timestamp of the last update")


# Payloads accepted by the mutating operations.

class DeveloperPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = Field(..., min_length=1)
    email: EmailStr = Field(...)


class LanguagePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)


class RepoPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    developer_id: str = Field(..., min_length=1)
    language_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
