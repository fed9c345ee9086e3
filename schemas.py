from typing import Optional

from pydantic import BaseModel, field_validator


# Fields are optional here so that missing values are reported by the
# handlers themselves with a 400 instead of a validation error
class PostCreate(BaseModel):
    post_str_id: Optional[str] = None
    content: Optional[str] = None


class PostCreated(BaseModel):
    internal_db_id: int
    post_str_id: str
    status: str = "created"


class LikeCreate(BaseModel):
    user_id_str: Optional[str] = None

    # Numeric user ids are stored as their string form
    @field_validator("user_id_str", mode="before")
    @classmethod
    def number_to_str(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class LikeStatus(BaseModel):
    status: str


class LikeCount(BaseModel):
    post_str_id: str
    like_count: int


class ErrorOut(BaseModel):
    error: str
    details: Optional[str] = None
