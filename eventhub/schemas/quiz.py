from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eventhub.services.scoring_service import coerce_time_spent
from eventhub.utils.helpers import as_utc


class OptionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    is_correct: bool = Field(False, alias='isCorrect')

    @field_validator('id', mode='before')
    @classmethod
    def stringify_id(cls, value):
        return str(value)


class QuestionIn(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[OptionIn] = Field(..., min_length=2)
    points: int = Field(1000, gt=0)

    @model_validator(mode='after')
    def exactly_one_correct(self):
        if sum(1 for o in self.options if o.is_correct) != 1:
            raise ValueError('Exactly one option must be marked correct')
        if len({o.id for o in self.options}) != len(self.options):
            raise ValueError('Option ids must be unique')
        return self


class QuizCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=191)
    description: Optional[str] = None
    cover_image: Optional[str] = Field(None, alias='coverImage')
    time_limit: int = Field(30, gt=0, alias='timeLimit')
    start_at: datetime = Field(..., alias='startAt')
    end_at: datetime = Field(..., alias='endAt')
    questions: List[QuestionIn] = Field(..., min_length=1)

    @field_validator('start_at', 'end_at')
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)

    @model_validator(mode='after')
    def check_window(self):
        if self.end_at <= self.start_at:
            raise ValueError('endAt must be after startAt')
        return self


class QuizUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=191)
    description: Optional[str] = None
    cover_image: Optional[str] = Field(None, alias='coverImage')
    time_limit: Optional[int] = Field(None, gt=0, alias='timeLimit')
    start_at: Optional[datetime] = Field(None, alias='startAt')
    end_at: Optional[datetime] = Field(None, alias='endAt')
    questions: Optional[List[QuestionIn]] = None

    @field_validator('start_at', 'end_at')
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)


class AnswerIn(BaseModel):
    """
    One submitted answer

    Kept loose on purpose: an unknown question or option scores zero
    instead of rejecting the submission.
    """
    model_config = ConfigDict(populate_by_name=True)

    question_id: Optional[Union[int, str]] = Field(None, alias='questionId')
    selected_option: Optional[Union[int, str]] = Field(None, alias='selectedOption')
    time_spent: float = Field(0, alias='timeSpent')

    @field_validator('question_id', 'selected_option', mode='before')
    @classmethod
    def scalar_or_none(cls, value):
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            return None
        return value

    @field_validator('time_spent', mode='before')
    @classmethod
    def loose_time(cls, value):
        return coerce_time_spent(value)


class InactivityPeriod(BaseModel):
    model_config = ConfigDict(extra='allow')

    duration: float = 0

    @field_validator('duration', mode='before')
    @classmethod
    def loose_duration(cls, value):
        return coerce_time_spent(value)


class SubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answers: List[AnswerIn] = Field(default_factory=list)
    tab_switches: int = Field(0, ge=0, alias='tabSwitches')
    afk_incidents: int = Field(0, ge=0, alias='afkIncidents')
    screenshot_attempts: int = Field(0, ge=0, alias='screenshotAttempts')
    detected_extensions: List[str] = Field(default_factory=list, alias='detectedExtensions')
    inactivity_periods: List[InactivityPeriod] = Field(default_factory=list, alias='inactivityPeriods')

    @field_validator('answers', 'inactivity_periods', mode='before')
    @classmethod
    def drop_malformed_items(cls, value):
        # a single malformed entry is skipped, the rest of the submission stands
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


class PenaltyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    points_to_reduce: Optional[int] = Field(None, alias='pointsToReduce')
    reason: Optional[str] = None
