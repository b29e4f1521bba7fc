from typing import Any

from pydantic import BaseModel, Field


class ChangeDecision(BaseModel):
    """Body of a review decision.

    ``status`` accepts any JSON value; the change store rejects anything
    other than pending, approved or rejected with a 400.
    """

    status: Any = Field(default=None, description="pending, approved or rejected")
