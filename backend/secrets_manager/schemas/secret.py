"""
Secret schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

# Characters accepted in the last segment of a parameter-store path
SECRET_NAME_PATTERN = r"^[A-Za-z0-9_.\-]+$"


class SecretCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, pattern=SECRET_NAME_PATTERN)
    value: str = Field(..., min_length=1, max_length=8192)
    description: Optional[str] = Field(None, max_length=2000)
    project_id: int
    is_encrypted: bool = False


class SecretUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255, pattern=SECRET_NAME_PATTERN)
    value: Optional[str] = Field(None, min_length=1, max_length=8192)
    description: Optional[str] = Field(None, max_length=2000)
    is_encrypted: Optional[bool] = None


class SecretResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    value: str
    description: Optional[str] = None
    project_id: int
    ssm_path: str
    is_encrypted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SecretValueResponse(BaseModel):
    """Value read back from the credential store."""
    id: int
    ssm_path: str
    value: str
