from decimal import Decimal
from typing import Union

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from casino.core.games import (
    baccarat_game,
    dice_game,
    poker_game,
    roulette_game,
    slots_game,
)
from casino.core.ledger import HISTORY_LIMIT_MAX, Ledger
from casino.routers.identity import get_current_account_id

router = APIRouter()

# ==================== Request Models ====================

class BetRequest(BaseModel):
    bet: Decimal

class RouletteRequest(BaseModel):
    bet: Decimal
    bet_type: str
    bet_value: Union[int, str] = ""

class DiceRequest(BaseModel):
    bet: Decimal
    bet_type: str

class BaccaratRequest(BaseModel):
    bet: Decimal
    side: str

class BlackjackActionRequest(BaseModel):
    state: str


# ==================== Helpers ====================

def get_ledger(request: Request) -> Ledger:
    return request.app.state.ledger


# ==================== Account Endpoints ====================

@router.get("/profile")
def get_profile(account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    account = ledger.store.get_account(account_id)
    return {
        "user": {"id": account.id, "username": account.username, "balance": account.balance},
        "games": [summary.to_dict() for summary in ledger.summary(account_id)],
    }

@router.get("/balance")
def get_balance(account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    return {"user_id": account_id, "balance": ledger.balance(account_id)}

@router.get("/history")
def get_history(
    limit: int = Query(50, ge=1, le=HISTORY_LIMIT_MAX),
    account_id: int = Depends(get_current_account_id),
    ledger: Ledger = Depends(get_ledger),
):
    return {"history": [entry.to_dict() for entry in ledger.history(account_id, limit)]}


# ==================== Game Endpoints ====================

@router.post("/games/slots")
def slots_spin(data: BetRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    result = ledger.play_round(account_id, "slots", data.bet, slots_game.spin)
    return result.to_dict()

@router.post("/games/roulette")
def roulette_spin(data: RouletteRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    result = ledger.play_round(
        account_id, "roulette", data.bet,
        lambda stake: roulette_game.spin(stake, data.bet_type, data.bet_value),
    )
    return result.to_dict()

@router.post("/games/dice")
def dice_roll(data: DiceRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    result = ledger.play_round(
        account_id, "dice", data.bet,
        lambda stake: dice_game.roll(stake, data.bet_type),
    )
    return result.to_dict()

@router.post("/games/poker")
def poker_deal(data: BetRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    result = ledger.play_round(account_id, "poker", data.bet, poker_game.deal)
    return result.to_dict()

@router.post("/games/baccarat")
def baccarat_deal(data: BaccaratRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    result = ledger.play_round(
        account_id, "baccarat", data.bet,
        lambda stake: baccarat_game.deal(stake, data.side),
    )
    return result.to_dict()

@router.post("/games/blackjack/start")
def blackjack_start(data: BetRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    return ledger.start_blackjack(account_id, data.bet).to_dict()

@router.post("/games/blackjack/hit")
def blackjack_hit(data: BlackjackActionRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    return ledger.hit_blackjack(account_id, data.state).to_dict()

@router.post("/games/blackjack/stand")
def blackjack_stand(data: BlackjackActionRequest, account_id: int = Depends(get_current_account_id), ledger: Ledger = Depends(get_ledger)):
    return ledger.stand_blackjack(account_id, data.state).to_dict()
