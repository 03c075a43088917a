"""
Common Pydantic schemas for API responses.
"""

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Generic acknowledgement for mutations without a body."""
    success: bool = True
