from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ReviewBase(BaseModel):
    title: Optional[str] = None
    text: Optional[str] = None


class ReviewCreate(ReviewBase):
    """Request body for new reviews. Rating and champion come from the query string."""
    pass


class ReviewUpdate(ReviewBase):
    """Request body for edits. Omitted fields keep their stored value."""
    pass


class ReviewResponse(BaseModel):
    id: int
    rating: int
    title: str
    text: str
    user_id: int
    champion_id: int
    created: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewView(BaseModel):
    """Review with user and champion references resolved to display names."""
    id: int
    rating: int
    title: str
    text: str
    created: datetime
    username: str
    champion_name: str
