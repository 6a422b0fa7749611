from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class HandCreate(BaseModel):
    hand: Dict[str, Any]
    session_id: Optional[str] = None
    hero_pnl: Optional[float] = None


class SavedHandResponse(BaseModel):
    id: str
    user_id: str
    hand: Dict[str, Any]
    session_id: Optional[str] = None
    hero_pnl: float = 0
    timestamp: datetime

    class Config:
        from_attributes = True
