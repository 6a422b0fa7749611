from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.bankroll.schemas import (
    BankrollAdjustment, BankrollTransactionResponse, BankrollSummaryResponse
)
from stack_api.modules.bankroll.service import BankrollService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/bankroll", tags=["bankroll"])


def get_bankroll_service(supabase: Client = Depends(get_supabase)) -> BankrollService:
    return BankrollService(supabase)


@router.get("", response_model=BankrollSummaryResponse)
async def get_summary(
    user_data: Dict = Depends(get_current_user_id),
    service: BankrollService = Depends(get_bankroll_service)
):
    return service.get_summary(user_data["id"])


@router.get("/transactions", response_model=List[BankrollTransactionResponse])
async def list_transactions(
    user_data: Dict = Depends(get_current_user_id),
    service: BankrollService = Depends(get_bankroll_service)
):
    return service.list_transactions(user_data["id"])


@router.post("/transactions", response_model=BankrollTransactionResponse, status_code=201)
async def adjust_bankroll(
    adjustment: BankrollAdjustment,
    user_data: Dict = Depends(get_current_user_id),
    service: BankrollService = Depends(get_bankroll_service)
):
    """Positive amounts add to the bankroll, negative amounts withdraw"""
    return service.adjust(user_data["id"], adjustment)


@router.delete("/transactions/{transaction_id}", response_model=BankrollSummaryResponse)
async def delete_transaction(
    transaction_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: BankrollService = Depends(get_bankroll_service)
):
    return service.delete_transaction(user_data["id"], transaction_id)
