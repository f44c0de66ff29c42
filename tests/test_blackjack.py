from decimal import Decimal

import pytest

from casino.core.deck import card_value, hand_value
from casino.core.exceptions import StateIntegrityError
from casino.core.games.blackjack import BlackjackGame, BlackjackTurn
from casino.core.models import Outcome
from casino.core.round_state import RoundSealer, RoundState, SealedDeckSource
from tests.helpers import card, stacked

STAKE = Decimal("10.00")
ACCOUNT = 1


def play_to_turn(game: BlackjackGame) -> BlackjackTurn:
    turn = game.start(STAKE, ACCOUNT)
    assert isinstance(turn, BlackjackTurn)
    return turn


class TestStart:

    def test_natural_pays_three_to_two(self, make_blackjack):
        outcome = make_blackjack("A♠", "K♥", "9♦", "9♣").start(STAKE, ACCOUNT)
        assert isinstance(outcome, Outcome)
        assert outcome.classification == "blackjack"
        assert outcome.payout == Decimal("25.00")
        assert outcome.details["dealer_value"] == 18

    def test_natural_against_dealer_natural_pushes(self, make_blackjack):
        outcome = make_blackjack("A♠", "K♥", "A♦", "Q♣").start(STAKE, ACCOUNT)
        assert outcome.classification == "push"
        assert outcome.payout == STAKE

    def test_deal_order(self, make_blackjack):
        turn = play_to_turn(make_blackjack("K♠", "7♥", "9♦", "5♣"))
        assert turn.player_hand == [card("K♠"), card("7♥")]
        assert turn.dealer_up_card == card("9♦")

    def test_only_up_card_is_shown(self, make_blackjack):
        data = play_to_turn(make_blackjack("K♠", "7♥", "9♦", "5♣")).to_dict()
        assert data["dealer_up_card"]["display"] == "9♦"
        assert data["dealer_value"] == card_value(card("9♦")) == 9
        assert data["dealer_hidden"] is True
        assert "dealer_hand" not in data
        assert data["status"] == "playing"
        assert data["player_value"] == 17

    def test_token_carries_no_cards(self, make_blackjack, sealer):
        turn = play_to_turn(make_blackjack("K♠", "7♥", "9♦", "5♣"))
        payload = sealer._serializer.loads(turn.token)
        assert set(payload) == {"round_id", "account_id", "stake", "hits"}

    def test_each_round_gets_its_own_id(self, make_blackjack):
        game = make_blackjack("K♠", "7♥", "9♦", "5♣")
        assert play_to_turn(game).round_id != play_to_turn(game).round_id


class TestHit:

    def test_bust_settles_the_round(self, make_blackjack):
        game = make_blackjack("K♠", "Q♥", "7♦", "9♣", "5♦")
        turn = play_to_turn(game)

        outcome = game.hit(game.open_round(turn.token, ACCOUNT))
        assert isinstance(outcome, Outcome)
        assert outcome.classification == "bust"
        assert outcome.payout == 0
        assert outcome.details["player_value"] == 25
        assert outcome.round_id == turn.round_id

    def test_hit_below_21_stays_in_turn(self, make_blackjack):
        game = make_blackjack("5♠", "6♥", "7♦", "9♣", "3♦")
        turn = play_to_turn(game)

        step = game.hit(game.open_round(turn.token, ACCOUNT))
        assert isinstance(step, BlackjackTurn)
        assert step.new_card == card("3♦")
        assert step.to_dict()["player_value"] == 14
        assert step.round_id == turn.round_id

    def test_hit_to_21_does_not_stand_automatically(self, make_blackjack):
        game = make_blackjack("5♠", "6♥", "7♦", "9♣", "K♦")
        step = game.hit(game.open_round(play_to_turn(game).token, ACCOUNT))
        assert isinstance(step, BlackjackTurn)
        assert step.to_dict()["player_value"] == 21

    def test_reopened_round_continues_from_the_same_deck(self, make_blackjack):
        game = make_blackjack("5♠", "6♥", "7♦", "9♣", "3♦", "K♣")
        step = game.hit(game.open_round(play_to_turn(game).token, ACCOUNT))

        state = game.open_round(step.token, ACCOUNT)
        assert state.player_hand == [card("5♠"), card("6♥"), card("3♦")]

        outcome = game.stand(state)
        # Dealer 16 draws K♣
        assert outcome.details["dealer_hand"][-1]["display"] == "K♣"
        assert outcome.classification == "dealer_bust"


class TestStand:

    @pytest.mark.parametrize("codes, expected, payout", [
        (("K♠", "8♥", "10♦", "6♣", "K♦"), "dealer_bust", "20.00"),
        (("K♠", "9♥", "10♦", "8♣"), "win", "20.00"),
        (("K♠", "8♥", "10♦", "8♣"), "push", "10.00"),
        (("K♠", "7♥", "10♦", "8♣"), "loss", "0.00"),
    ])
    def test_outcomes(self, make_blackjack, codes, expected, payout):
        game = make_blackjack(*codes)
        outcome = game.stand(game.open_round(play_to_turn(game).token, ACCOUNT))
        assert outcome.classification == expected
        assert outcome.payout == Decimal(payout)

    def test_dealer_draws_until_seventeen(self, make_blackjack):
        game = make_blackjack("K♠", "Q♥", "2♦", "3♣", "4♦", "5♣", "3♥")
        outcome = game.stand(game.open_round(play_to_turn(game).token, ACCOUNT))
        assert len(outcome.details["dealer_hand"]) == 5
        assert outcome.details["dealer_value"] == 17
        assert outcome.classification == "win"

    def test_dealer_stands_on_soft_seventeen(self, make_blackjack):
        game = make_blackjack("K♠", "8♥", "A♦", "6♣")
        outcome = game.stand(game.open_round(play_to_turn(game).token, ACCOUNT))
        assert len(outcome.details["dealer_hand"]) == 2
        assert outcome.classification == "win"


class TestTokenIntegrity:

    def test_tampered_token(self, make_blackjack):
        game = make_blackjack("K♠", "7♥", "9♦", "5♣")
        token = play_to_turn(game).token
        # Flip a character inside the signed payload
        forged = token[:2] + ("A" if token[2] != "A" else "B") + token[3:]
        with pytest.raises(StateIntegrityError):
            game.open_round(forged, ACCOUNT)

    def test_token_for_another_account(self, make_blackjack):
        game = make_blackjack("K♠", "7♥", "9♦", "5♣")
        token = play_to_turn(game).token
        with pytest.raises(StateIntegrityError):
            game.open_round(token, ACCOUNT + 1)

    def test_token_signed_with_another_secret(self, make_blackjack):
        game = make_blackjack("K♠", "7♥", "9♦", "5♣")
        outsider = RoundSealer("some-other-secret", max_age=3600)
        token = outsider.seal(RoundState(round_id="r1", account_id=ACCOUNT, stake=STAKE))
        with pytest.raises(StateIntegrityError):
            game.open_round(token, ACCOUNT)

    def test_expired_token(self, make_blackjack):
        token = play_to_turn(make_blackjack("K♠", "7♥", "9♦", "5♣")).token
        strict = BlackjackGame(
            deck_source=SealedDeckSource("test-secret-key"),
            sealer=RoundSealer("test-secret-key", max_age=-1),
        )
        with pytest.raises(StateIntegrityError):
            strict.open_round(token, ACCOUNT)

    @pytest.mark.parametrize("payload", [
        ["not", "an", "object"],
        {"round_id": "r1", "account_id": ACCOUNT, "stake": "10.00"},
        {"round_id": "", "account_id": ACCOUNT, "stake": "10.00", "hits": 0},
        {"round_id": "r1", "account_id": "1", "stake": "10.00", "hits": 0},
        {"round_id": "r1", "account_id": ACCOUNT, "stake": "-5", "hits": 0},
        {"round_id": "r1", "account_id": ACCOUNT, "stake": "0.001", "hits": 0},
        {"round_id": "r1", "account_id": ACCOUNT, "stake": "ten", "hits": 0},
        {"round_id": "r1", "account_id": ACCOUNT, "stake": "10.00", "hits": 49},
        {"round_id": "r1", "account_id": ACCOUNT, "stake": "10.00", "hits": True},
    ])
    def test_malformed_payload(self, make_blackjack, sealer, payload):
        game = make_blackjack("K♠", "7♥", "9♦", "5♣")
        token = sealer._serializer.dumps(payload)
        with pytest.raises(StateIntegrityError):
            game.open_round(token, ACCOUNT)

    def test_empty_token(self, make_blackjack):
        with pytest.raises(StateIntegrityError):
            make_blackjack("K♠", "7♥", "9♦", "5♣").open_round("", ACCOUNT)

    def test_natural_round_cannot_be_reopened(self, make_blackjack, sealer):
        game = make_blackjack("A♠", "K♥", "9♦", "9♣")
        token = sealer.seal(RoundState(round_id="r1", account_id=ACCOUNT, stake=STAKE))
        with pytest.raises(StateIntegrityError):
            game.open_round(token, ACCOUNT)

    def test_busted_round_cannot_be_reopened(self, make_blackjack, sealer):
        game = make_blackjack("K♠", "Q♥", "7♦", "9♣", "5♦")
        token = sealer.seal(RoundState(round_id="r1", account_id=ACCOUNT, stake=STAKE, hits=1))
        with pytest.raises(StateIntegrityError):
            game.open_round(token, ACCOUNT)


class TestSealedDeck:

    def test_same_round_same_deck(self):
        source = SealedDeckSource("secret")
        assert source.deck_for("round-a") == source.deck_for("round-a")

    def test_decks_differ_by_round_and_secret(self):
        assert SealedDeckSource("secret").deck_for("round-a") != SealedDeckSource("secret").deck_for("round-b")
        assert SealedDeckSource("secret").deck_for("round-a") != SealedDeckSource("other").deck_for("round-a")

    def test_deck_is_complete(self):
        deck = SealedDeckSource("secret").deck_for("round-a")
        assert len(deck) == 52
        assert len(set(deck)) == 52

    def test_full_round_with_real_deck(self, sealer):
        game = BlackjackGame(deck_source=SealedDeckSource("test-secret-key"), sealer=sealer)
        step = game.start(STAKE, ACCOUNT)
        while isinstance(step, BlackjackTurn):
            state = game.open_round(step.token, ACCOUNT)
            step = game.hit(state) if step.to_dict()["player_value"] < 17 else game.stand(state)
        assert step.classification in BlackjackGame.PAYOUTS
        assert step.payout == STAKE * Decimal(str(BlackjackGame.PAYOUTS[step.classification]))


class StackedRoundDeck(SealedDeckSource):
    """Stacked round deck with the real keyed reshuffle for the dealer."""

    def __init__(self, *codes):
        super().__init__("test-secret-key")
        self.deck = stacked(*codes)

    def deck_for(self, round_id):
        return list(self.deck)


class TestDealerShoe:

    def dealer_draws(self, up_cards, shoe):
        hand = list(up_cards)
        shoe = list(shoe)
        while hand_value(hand) < BlackjackGame.DEALER_STANDS_ON:
            hand.append(shoe.pop())
        return hand[2:]

    def test_standing_on_an_earlier_token_ignores_the_revealed_hit(self, sealer):
        source = StackedRoundDeck("5♠", "6♥", "7♦", "9♣", "K♦")
        game = BlackjackGame(deck_source=source, sealer=sealer)
        start = play_to_turn(game)

        later = game.hit(game.open_round(start.token, ACCOUNT))
        assert later.new_card == card("K♦")

        outcome = game.stand(game.open_round(start.token, ACCOUNT))

        remaining = source.deck[:-4]
        expected = self.dealer_draws(
            [card("7♦"), card("9♣")], source.dealer_shoe(start.round_id, 0, remaining)
        )
        assert [c["display"] for c in outcome.details["dealer_hand"][2:]] == [c.code for c in expected]

    def test_shoe_depends_on_the_hit_count(self):
        source = SealedDeckSource("secret")
        cards = source.deck_for("round-a")[:-4]
        first = source.dealer_shoe("round-a", 0, cards)
        assert first == source.dealer_shoe("round-a", 0, cards)
        assert first != source.dealer_shoe("round-a", 1, cards)
        assert sorted(first, key=lambda c: c.code) == sorted(cards, key=lambda c: c.code)
