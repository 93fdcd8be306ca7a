from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, max_length=191, pattern=r'^[^@\s]+@[^@\s]+$')
    password: str = Field(..., min_length=6)
    display_name: str = Field(..., min_length=1, max_length=191, alias='displayName')
    study_level: Optional[str] = Field(None, alias='studyLevel')
    study_program: Optional[str] = Field(None, alias='studyProgram')


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Only the fields sent are changed; null clears a study attribute"""
    model_config = ConfigDict(populate_by_name=True)

    display_name: Optional[str] = Field(None, min_length=1, max_length=191, alias='displayName')
    study_level: Optional[str] = Field(None, max_length=100, alias='studyLevel')
    study_program: Optional[str] = Field(None, max_length=191, alias='studyProgram')


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias='currentPassword')
    new_password: str = Field(..., min_length=6, alias='newPassword')
