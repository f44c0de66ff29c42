"""
Ledger: the one place a round touches money.

Every round goes validate stake -> check funds -> resolve -> settle, and
settling is a single call into the account store's atomic unit so the
balance change and the history entry land together or not at all.
"""

from decimal import Decimal
from typing import Callable, List, Union

from casino.config import settings
from casino.core.database import Database
from casino.core.exceptions import (
    CasinoError,
    InsufficientFundsError,
    StateIntegrityError,
    ValidationError,
)
from casino.core.games.blackjack import BlackjackGame, BlackjackTurn, blackjack_game
from casino.core.logger import get_logger
from casino.core.models import GameSummary, HistoryEntry, Outcome, RoundResult
from casino.core.money import Number, has_cent_precision, to_amount

logger = get_logger("ledger")

HISTORY_LIMIT_MAX = 200


class Ledger:
    """Coordinates resolvers with the account store."""

    def __init__(self, store: Database, blackjack: BlackjackGame = None):
        self.store = store
        self.blackjack = blackjack or blackjack_game

    # ==================== Checks ====================

    def validate_stake(self, stake: Number) -> Decimal:
        """Normalize a stake or raise ValidationError."""
        try:
            amount = to_amount(stake)
        except ValueError:
            raise ValidationError(f"Invalid bet amount: {stake!r}")

        if amount <= 0:
            raise ValidationError("Bet must be positive")

        # Range first: quantizing an absurdly large amount overflows the decimal context
        min_stake = settings.economy.min_stake
        max_stake = settings.economy.max_stake
        if amount < min_stake or amount > max_stake:
            raise ValidationError(f"Bet must be between {min_stake} and {max_stake}")
        if not has_cent_precision(amount):
            raise ValidationError("Bet cannot have more than two decimal places")

        return amount.quantize(Decimal("0.01"))

    @staticmethod
    def ensure_enabled(game: str):
        if not settings.games.is_enabled(game):
            raise ValidationError(f"{game} is currently disabled")

    def ensure_funds(self, account_id: int, stake: Decimal) -> Decimal:
        """Reject before any outcome is computed. Returns the balance seen."""
        balance = self.store.read_balance(account_id)
        if stake > balance:
            logger.warning(f"Account {account_id} bet {stake} with balance {balance}")
            raise InsufficientFundsError(stake, balance)
        return balance

    # ==================== Settlement ====================

    def apply_round(self, account_id: int, stake: Decimal, outcome: Outcome) -> Decimal:
        """
        Commit one resolved round: balance += payout - stake, plus its history
        entry, atomically. Returns the balance read inside the same transaction.
        """
        if outcome.stake != stake:
            raise ValidationError("Outcome was resolved for a different stake")
        if outcome.payout < 0:
            raise ValidationError("Payout cannot be negative")

        entry = HistoryEntry.for_outcome(account_id, outcome)
        try:
            balance = self.store.atomically(account_id, outcome.payout - stake, entry)
        except CasinoError as e:
            logger.warning(
                f"Round not settled for account {account_id} ({outcome.game}): {e.message}"
            )
            raise

        logger.info(
            f"Account {account_id} {outcome.game} {outcome.classification}: "
            f"bet {stake} paid {outcome.payout} balance {balance}"
        )
        return balance

    def play_round(
        self,
        account_id: int,
        game: str,
        stake: Number,
        resolve: Callable[[Decimal], Outcome],
    ) -> RoundResult:
        """
        Run a one-shot game. `resolve` maps the validated stake to an Outcome;
        it only runs once the stake is known to be covered.
        """
        self.ensure_enabled(game)
        amount = self.validate_stake(stake)
        self.ensure_funds(account_id, amount)

        outcome = resolve(amount)
        balance = self.apply_round(account_id, amount, outcome)
        return RoundResult(outcome=outcome, balance=balance)

    # ==================== Blackjack ====================

    def _settle_or_continue(
        self, account_id: int, step: Union[BlackjackTurn, Outcome]
    ) -> Union[BlackjackTurn, RoundResult]:
        if isinstance(step, Outcome):
            balance = self.apply_round(account_id, step.stake, step)
            return RoundResult(outcome=step, balance=balance)
        return step

    def _open_blackjack_round(self, account_id: int, token: str):
        self.ensure_enabled("blackjack")
        state = self.blackjack.open_round(token, account_id)
        if self.store.is_round_settled(state.round_id):
            logger.warning(f"Account {account_id} replayed settled round {state.round_id}")
            raise StateIntegrityError("Round has already been settled")
        return state

    def start_blackjack(self, account_id: int, stake: Number) -> Union[BlackjackTurn, RoundResult]:
        self.ensure_enabled("blackjack")
        amount = self.validate_stake(stake)
        self.ensure_funds(account_id, amount)
        return self._settle_or_continue(account_id, self.blackjack.start(amount, account_id))

    def hit_blackjack(self, account_id: int, token: str) -> Union[BlackjackTurn, RoundResult]:
        state = self._open_blackjack_round(account_id, token)
        self.ensure_funds(account_id, state.stake)
        return self._settle_or_continue(account_id, self.blackjack.hit(state))

    def stand_blackjack(self, account_id: int, token: str) -> RoundResult:
        state = self._open_blackjack_round(account_id, token)
        self.ensure_funds(account_id, state.stake)
        return self._settle_or_continue(account_id, self.blackjack.stand(state))

    # ==================== Reads ====================

    def balance(self, account_id: int) -> Decimal:
        return self.store.read_balance(account_id)

    def history(self, account_id: int, limit: int = 50) -> List[HistoryEntry]:
        if not 1 <= limit <= HISTORY_LIMIT_MAX:
            raise ValidationError(f"Limit must be between 1 and {HISTORY_LIMIT_MAX}")
        return self.store.list_history(account_id, limit)

    def summary(self, account_id: int) -> List[GameSummary]:
        return self.store.game_summary(account_id)
