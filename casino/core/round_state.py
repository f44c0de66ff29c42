"""
Blackjack round state that travels with the client between requests.

The client holds a signed token with the round id, the owner, the stake and
how many cards the player has hit. Signed is not encrypted, so no card goes
into the token: the deck is derived from HMAC(secret, round_id) and both hands
are re-dealt from it on every request. The same round always yields the same
deck and no other round (or account) can reuse it. The dealer draws from the
leftover cards reshuffled under HMAC(secret, round_id:hits).
"""

import hashlib
import hmac
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from itsdangerous import BadData, URLSafeTimedSerializer

from casino.config import settings
from casino.core.deck import Card, build_deck
from casino.core.exceptions import StateIntegrityError
from casino.core.logger import get_logger
from casino.core.money import has_cent_precision, to_amount
from casino.core.rng import SeededRNG

logger = get_logger("round_state")

# 52 cards minus the four dealt at the start
MAX_HITS = 48


@dataclass
class RoundState:
    round_id: str
    account_id: int
    stake: Decimal
    hits: int = 0
    # Filled in from the round's deck, never serialized
    deck: List[Card] = field(default_factory=list)
    player_hand: List[Card] = field(default_factory=list)
    dealer_hand: List[Card] = field(default_factory=list)

    def to_payload(self) -> Dict:
        return {
            "round_id": self.round_id,
            "account_id": self.account_id,
            "stake": str(self.stake),
            "hits": self.hits,
        }

    @classmethod
    def from_payload(cls, payload) -> "RoundState":
        """Rebuild a state, rejecting anything that is not the shape we issued."""
        if not isinstance(payload, dict):
            raise StateIntegrityError("Round state must be an object")

        missing = {"round_id", "account_id", "stake", "hits"} - set(payload)
        if missing:
            raise StateIntegrityError(f"Round state is missing {', '.join(sorted(missing))}")

        round_id = payload["round_id"]
        account_id = payload["account_id"]
        hits = payload["hits"]
        if not isinstance(round_id, str) or not round_id:
            raise StateIntegrityError("Round state has no round id")
        if not isinstance(account_id, int) or isinstance(account_id, bool):
            raise StateIntegrityError("Round state has no owner")
        if not isinstance(hits, int) or isinstance(hits, bool) or not 0 <= hits <= MAX_HITS:
            raise StateIntegrityError("Round state has an impossible number of cards")

        try:
            stake = to_amount(payload["stake"])
        except ValueError:
            raise StateIntegrityError("Round state has an invalid stake")
        if stake <= 0 or not has_cent_precision(stake):
            raise StateIntegrityError("Round state has an invalid stake")

        return cls(round_id=round_id, account_id=account_id, stake=stake, hits=hits)


class SealedDeckSource:
    """
    Per-round decks seeded from HMAC-SHA256(secret, message).

    The player draws from the round deck. The dealer draws from what is left,
    reshuffled under a key that includes the hit count: a card shown by a hit
    on a later token does not decide the dealer's draws on an earlier one.
    """

    def __init__(self, secret_key: str = None):
        self._key = (secret_key or settings.security.secret_key).encode("utf-8")

    def _rng(self, message: str) -> SeededRNG:
        digest = hmac.new(self._key, message.encode("utf-8"), hashlib.sha256).digest()
        return SeededRNG(int.from_bytes(digest, "big"))

    def deck_for(self, round_id: str) -> List[Card]:
        return self._rng(round_id).shuffle(build_deck())

    def dealer_shoe(self, round_id: str, hits: int, cards: List[Card]) -> List[Card]:
        return self._rng(f"{round_id}:{hits}").shuffle(cards)


class RoundSealer:
    """Signs round states into opaque tokens and verifies them on the way back."""

    SALT = "blackjack-round"

    def __init__(self, secret_key: str = None, max_age: int = None):
        self._serializer = URLSafeTimedSerializer(
            secret_key or settings.security.secret_key, salt=self.SALT
        )
        self.max_age = max_age if max_age is not None else settings.security.round_max_age_seconds

    def seal(self, state: RoundState) -> str:
        return self._serializer.dumps(state.to_payload())

    def open(self, token: str, account_id: int) -> RoundState:
        """
        Verify and decode a token.

        Raises:
            StateIntegrityError: bad signature, expired, malformed or owned by another account
        """
        if not isinstance(token, str) or not token:
            raise StateIntegrityError("Missing round state")

        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except BadData as e:
            logger.warning(f"Rejected round token for account {account_id}: {type(e).__name__}")
            raise StateIntegrityError("Round state failed verification")

        state = RoundState.from_payload(payload)
        if state.account_id != account_id:
            logger.warning(
                f"Account {account_id} submitted round {state.round_id} owned by {state.account_id}"
            )
            raise StateIntegrityError("Round state belongs to another account")
        return state
