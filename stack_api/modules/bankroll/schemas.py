from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class BankrollAdjustment(BaseModel):
    amount: float
    note: Optional[str] = Field(None, max_length=200)

    @field_validator("amount")
    @classmethod
    def non_zero(cls, value: float) -> float:
        if value == 0:
            raise ValueError("Amount must not be zero")
        return value


class BankrollTransactionResponse(BaseModel):
    id: str
    user_id: str
    amount: float
    note: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class BankrollSummaryResponse(BaseModel):
    user_id: str
    current_total: float = 0
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True
