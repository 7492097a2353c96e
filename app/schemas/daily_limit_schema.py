from pydantic import BaseModel, Field, model_validator
from typing import Optional


class DailyLimitStatus(BaseModel):
    date: str
    max_uploads: int
    current_uploads: int
    remaining: int


class DailyLimitUpdate(BaseModel):
    # The admin UI edits either the absolute cap or what is left for today
    max_uploads: Optional[int] = Field(default=None, ge=0)
    remaining: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_one_of(self):
        if self.max_uploads is None and self.remaining is None:
            raise ValueError("Either max_uploads or remaining must be provided.")
        if self.max_uploads is not None and self.remaining is not None:
            raise ValueError("Provide only one of max_uploads or remaining.")
        return self


class DailyLimitUpdateResponse(DailyLimitStatus):
    message: str = "Daily limit updated successfully"
