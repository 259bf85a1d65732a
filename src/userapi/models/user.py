"""
User record data models.

Field-level checks for creation live in the users router so that failures
are reported one at a time, in a fixed order, with specific messages.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """
    A user record as stored and returned by the API.

    ``password`` holds the masked secret once the record has been written.
    """

    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Email address (must contain '@')")
    password: Optional[str] = Field(
        default=None,
        description="Secret, at least 8 characters on creation; returned base64-masked",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Bob",
                "email": "bob@x.com",
                "password": "Password123",
            }
        }
    )


class ErrorResponse(BaseModel):
    """Error response body."""

    error: str = Field(description="Human readable error message")
