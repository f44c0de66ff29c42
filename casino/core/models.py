"""Records that flow between the games, the ledger and the account store."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Outcome:
    """Resolved result of one round. Immutable once a game produced it."""

    game: str
    stake: Decimal
    payout: Decimal
    classification: str
    details: Dict[str, Any] = field(default_factory=dict)
    round_id: Optional[str] = None

    @property
    def is_win(self) -> bool:
        return self.payout > self.stake

    @property
    def net(self) -> Decimal:
        return self.payout - self.stake

    def payload(self) -> Dict[str, Any]:
        """The structured blob stored in history."""
        return {"classification": self.classification, **self.details}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game": self.game,
            "bet": self.stake,
            "payout": self.payout,
            "net": self.net,
            "win": self.is_win,
            "outcome": self.classification,
            **self.details,
        }


@dataclass(frozen=True)
class HistoryEntry:
    account_id: int
    game: str
    stake: Decimal
    payout: Decimal
    outcome: Dict[str, Any]
    round_id: Optional[str] = None
    balance_after: Optional[Decimal] = None
    played_at: Optional[datetime] = None
    id: Optional[int] = None

    @classmethod
    def for_outcome(cls, account_id: int, outcome: Outcome) -> "HistoryEntry":
        return cls(
            account_id=account_id,
            game=outcome.game,
            stake=outcome.stake,
            payout=outcome.payout,
            outcome=outcome.payload(),
            round_id=outcome.round_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "game": self.game,
            "bet": self.stake,
            "payout": self.payout,
            "balance_after": self.balance_after,
            "result": self.outcome,
            "round_id": self.round_id,
            "played_at": self.played_at.isoformat() if self.played_at else None,
        }


@dataclass(frozen=True)
class Account:
    id: int
    username: str
    balance: Decimal
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class RoundResult:
    """What a settled round hands back to the caller."""

    outcome: Outcome
    balance: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {**self.outcome.to_dict(), "balance": self.balance, "status": "complete"}


@dataclass(frozen=True)
class GameSummary:
    game: str
    plays: int
    total_wagered: Decimal
    total_paid: Decimal
    biggest_win: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game": self.game,
            "plays": self.plays,
            "total_wagered": self.total_wagered,
            "total_paid": self.total_paid,
            "biggest_win": self.biggest_win,
        }

