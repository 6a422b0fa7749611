from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FollowResponse(BaseModel):
    id: Optional[str] = None
    follower_id: str
    followee_id: str
    post_notifications: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FollowStatusResponse(BaseModel):
    user_id: str
    is_following: bool
    post_notifications: bool = False


class FollowCountsResponse(BaseModel):
    user_id: str
    followers_count: int
    following_count: int


class PostNotificationsUpdate(BaseModel):
    enabled: bool
