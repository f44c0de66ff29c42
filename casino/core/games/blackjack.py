from casino.core.deck import Card, card_value, cards_to_list, hand_value
from casino.core.exceptions import StateIntegrityError
from casino.core.models import Outcome
from casino.core.money import payout_for
from casino.core.round_state import RoundSealer, RoundState, SealedDeckSource
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Union
import uuid


@dataclass(frozen=True)
class BlackjackTurn:
    """A round waiting on the player. Only the dealer's up card is shown."""

    round_id: str
    stake: Decimal
    player_hand: List[Card]
    dealer_up_card: Card
    token: str
    new_card: Optional[Card] = None

    def to_dict(self) -> Dict:
        data = {
            "round_id": self.round_id,
            "state": self.token,
            "player_hand": cards_to_list(self.player_hand),
            "player_value": hand_value(self.player_hand),
            "dealer_up_card": self.dealer_up_card.to_dict(),
            # What the up card counts on its own; nothing about the hole card
            "dealer_value": card_value(self.dealer_up_card),
            "dealer_hidden": True,
            "bet": self.stake,
            "status": "playing",
        }
        if self.new_card is not None:
            data["new_card"] = self.new_card.to_dict()
        return data


class BlackjackGame:
    """
    Blackjack as a state machine: start -> (hit)* -> stand.

    No server-side table of open games: the round is sealed into a token the
    caller sends back with every hit or stand. A natural 21 settles on the
    deal, a bust settles on the hit, everything else settles on the stand.
    """

    DEALER_STANDS_ON = 17

    PAYOUTS = {
        "blackjack": 2.5,  # 3:2 + bet
        "dealer_bust": 2,
        "win": 2,
        "push": 1,  # Return original bet
        "bust": 0,
        "loss": 0,
    }

    def __init__(self, deck_source=None, sealer: RoundSealer = None):
        self.deck_source = deck_source or SealedDeckSource()
        self.sealer = sealer or RoundSealer()

    def _deal(self, state: RoundState) -> RoundState:
        """Deal the round from its own deck: player, player, dealer, dealer, then the hits."""
        deck = list(self.deck_source.deck_for(state.round_id))
        if len(deck) < 4 + state.hits:
            raise StateIntegrityError("Round state holds more cards than the deck")

        state.player_hand = [deck.pop(), deck.pop()]
        state.dealer_hand = [deck.pop(), deck.pop()]
        for _ in range(state.hits):
            state.player_hand.append(deck.pop())
        state.deck = deck
        return state

    def open_round(self, token: str, account_id: int) -> RoundState:
        """
        Verify a token sent back by the caller and rebuild the round.
        The hand must still be in the player's turn.

        Raises:
            StateIntegrityError: on any failed check
        """
        state = self._deal(self.sealer.open(token, account_id))

        player_val = hand_value(state.player_hand)
        if player_val > 21 or (state.hits == 0 and player_val == 21):
            raise StateIntegrityError("Round is already over")
        return state

    def _turn(self, state: RoundState, new_card: Card = None) -> BlackjackTurn:
        return BlackjackTurn(
            round_id=state.round_id,
            stake=state.stake,
            player_hand=list(state.player_hand),
            dealer_up_card=state.dealer_hand[0],
            token=self.sealer.seal(state),
            new_card=new_card,
        )

    def _finalize(self, state: RoundState, outcome: str) -> Outcome:
        return Outcome(
            game="blackjack",
            stake=state.stake,
            payout=payout_for(state.stake, self.PAYOUTS[outcome]),
            classification=outcome,
            details={
                "player_hand": cards_to_list(state.player_hand),
                "dealer_hand": cards_to_list(state.dealer_hand),
                "player_value": hand_value(state.player_hand),
                "dealer_value": hand_value(state.dealer_hand),
                "multiplier": self.PAYOUTS[outcome],
            },
            round_id=state.round_id,
        )

    def start(self, stake: Decimal, account_id: int) -> Union[BlackjackTurn, Outcome]:
        """
        Deal a new round. Stake and funds are checked by the caller.

        Returns:
            Outcome when the player is dealt 21, otherwise a BlackjackTurn
        """
        state = self._deal(RoundState(round_id=uuid.uuid4().hex, account_id=account_id, stake=stake))

        # Natural 21 is settled before any hit is possible
        if hand_value(state.player_hand) == 21:
            if hand_value(state.dealer_hand) == 21:
                return self._finalize(state, "push")
            return self._finalize(state, "blackjack")

        return self._turn(state)

    def hit(self, state: RoundState) -> Union[BlackjackTurn, Outcome]:
        """Draw one card for the player; busting settles the round."""
        if not state.deck:
            raise StateIntegrityError("No cards remaining")

        card = state.deck.pop()
        state.player_hand.append(card)
        state.hits += 1

        if hand_value(state.player_hand) > 21:
            return self._finalize(state, "bust")

        return self._turn(state, new_card=card)

    def stand(self, state: RoundState) -> Outcome:
        """Dealer draws to 17 or more, then the hands are compared."""
        state.deck = self.deck_source.dealer_shoe(state.round_id, state.hits, state.deck)
        while hand_value(state.dealer_hand) < self.DEALER_STANDS_ON:
            if not state.deck:
                raise StateIntegrityError("No cards remaining")
            state.dealer_hand.append(state.deck.pop())

        player_val = hand_value(state.player_hand)
        dealer_val = hand_value(state.dealer_hand)

        if dealer_val > 21:
            outcome = "dealer_bust"
        elif player_val > dealer_val:
            outcome = "win"
        elif player_val == dealer_val:
            outcome = "push"
        else:
            outcome = "loss"

        return self._finalize(state, outcome)


# Singleton instance
blackjack_game = BlackjackGame()
