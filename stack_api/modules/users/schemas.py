from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class ProfileCreate(BaseModel):
    username: str
    display_name: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = None
    favorite_game: Optional[str] = None
    favorite_games: List[str] = []


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = None
    favorite_game: Optional[str] = None
    favorite_games: Optional[List[str]] = None


class UserProfileResponse(BaseModel):
    id: str
    username: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    favorite_game: Optional[str] = None
    favorite_games: List[str] = []
    followers_count: int = 0
    following_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UsernameAvailability(BaseModel):
    username: str
    available: bool
    reason: Optional[str] = None
