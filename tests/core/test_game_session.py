"""Tests for the game session: credits, round lifecycle and game end."""

import pytest

from conftest import table_cards
from core.cards import full_deck
from core.errors import InvalidTransitionError
from core.game import EventType, GameState
from core.rules import RuleSet
from core.settlement import Outcome

# Player 10+9 stands on 19; dealer 10+7 stands on 17
WINNING_ROUND = ("10_of_hearts", "9_of_clubs", "10_of_spades", "7_of_clubs")
# Player 10+7 stands on 17; dealer 10+9 stands on 19
LOSING_ROUND = ("10_of_hearts", "7_of_clubs", "10_of_spades", "9_of_clubs")
# Player 10+8 ties dealer 10+8
TIED_ROUND = ("10_of_hearts", "8_of_clubs", "10_of_spades", "8_of_spades")


def _count(session, event_type: EventType) -> int:
    return sum(1 for e in session.events.history if e.event_type == event_type)


class TestCredits:
    """Tests for credit changes."""

    def test_starting_credits(self, session):
        assert session.credits == 200
        assert not session.is_over
        assert session.outcome is None
        assert session.outcome_text == ""

    def test_loss_costs_five(self, stacked_session):
        session = stacked_session(*LOSING_ROUND)
        session.start_round()
        session.stand()

        assert session.outcome == Outcome.LOSS
        assert session.outcome_text == "You lost!"
        assert session.credits == 195

    def test_win_pays_fifteen(self, stacked_session):
        session = stacked_session(*WINNING_ROUND)
        session.start_round()
        session.stand()

        assert session.outcome == Outcome.WIN
        assert session.credits == 215

    def test_tie_keeps_credits(self, stacked_session):
        session = stacked_session(*TIED_ROUND)
        session.start_round()
        session.stand()

        assert session.outcome == Outcome.TIE
        assert session.outcome_text == "It's a tie!"
        assert session.credits == 200

    def test_bust_on_deal_is_charged(self, stacked_session):
        session = stacked_session("ace_of_hearts", "ace_of_clubs", "10_of_spades", "7_of_spades")
        session.start_round()

        assert session.state == GameState.SETTLED
        assert session.busted
        assert session.credits == 195

    def test_settlement_applied_once(self, stacked_session):
        session = stacked_session(*WINNING_ROUND)
        session.start_round()
        session.stand()
        with pytest.raises(InvalidTransitionError):
            session.stand()

        assert session.credits == 215
        assert _count(session, EventType.CREDITS_CHANGED) == 1

    def test_custom_rules(self, stacked_session):
        rules = RuleSet(starting_credits=50, win_credit=20, loss_credit=10)
        session = stacked_session(*LOSING_ROUND, rules=rules)
        assert session.credits == 50
        session.start_round()
        session.stand()
        assert session.credits == 40


class TestGameEnd:
    """Tests for the end-of-game rule."""

    def test_apply_delta_crossing_zero_ends_game_once(self, session):
        ended = [session.apply_delta(-5) for _ in range(41)]

        # 40 losses reach exactly zero, the 41st goes below
        assert ended.index(True) == 40
        assert ended.count(True) == 1
        assert session.is_over
        assert session.end_reason == "bankrupt"
        assert _count(session, EventType.GAME_ENDED) == 1

    def test_apply_delta_after_game_over_raises(self, session):
        session.end_session()
        changes = _count(session, EventType.CREDITS_CHANGED)

        with pytest.raises(InvalidTransitionError):
            session.apply_delta(15)

        assert session.credits == 200
        assert _count(session, EventType.CREDITS_CHANGED) == changes

    def test_zero_credits_is_not_game_over(self, session):
        session.apply_delta(-200)
        assert session.credits == 0
        assert not session.is_over

    def test_losing_last_credits_ends_game(self, stacked_session):
        session = stacked_session(*LOSING_ROUND, credits=3)
        session.start_round()
        session.stand()

        assert session.credits == -2
        assert session.is_over
        assert session.end_reason == "bankrupt"
        # The final result stays readable after the table is cleared
        assert session.outcome_text == "You lost!"
        assert len(session.deck) == 52
        assert len(session.player_hand) == 0

    def test_no_rounds_after_game_over(self, stacked_session):
        session = stacked_session(*LOSING_ROUND, credits=0)
        session.start_round()
        session.stand()
        assert session.is_over

        with pytest.raises(InvalidTransitionError):
            session.start_round()
        with pytest.raises(InvalidTransitionError):
            session.reset_for_new_round()
        with pytest.raises(InvalidTransitionError):
            session.play_again()
        assert not session.can_deal

    def test_end_session(self, stacked_session):
        session = stacked_session("2_of_hearts", "3_of_clubs")
        session.start_round()
        session.end_session()

        assert session.is_over
        assert session.end_reason == "player_exit"
        assert session.credits == 200
        assert len(session.deck) == 52
        with pytest.raises(InvalidTransitionError):
            session.hit()

    def test_end_session_twice_is_noop(self, session):
        session.end_session()
        session.end_session()
        assert _count(session, EventType.GAME_ENDED) == 1


class TestRoundLifecycle:
    """Tests for resetting between rounds."""

    def test_reset_restores_table(self, stacked_session):
        session = stacked_session(*WINNING_ROUND)
        session.start_round()
        session.stand()
        credits = session.credits

        session.reset_for_new_round()

        assert session.state == GameState.AWAITING_DEAL
        assert len(session.deck) == 52
        assert len(session.player_hand) == 0
        assert len(session.dealer_hand) == 0
        assert not session.busted
        assert not session.blackjack
        assert session.outcome_text == ""
        assert session.credits == credits

    def test_reset_is_idempotent(self, session):
        session.reset_for_new_round()
        session.reset_for_new_round()
        assert len(session.deck) == 52
        assert session.credits == 200

    def test_reset_mid_round_raises(self, stacked_session):
        session = stacked_session("2_of_hearts", "3_of_clubs")
        session.start_round()
        with pytest.raises(InvalidTransitionError):
            session.reset_for_new_round()

    def test_play_again(self, stacked_session):
        session = stacked_session(*WINNING_ROUND, "5_of_hearts", "6_of_hearts")
        session.start_round()
        session.stand()
        session.play_again()

        assert session.state == GameState.PLAYER_TURN
        assert session.player_hand.identifiers == ["5_of_hearts", "6_of_hearts"]
        assert session.credits == 215

    def test_stats(self, stacked_session):
        session = stacked_session(*WINNING_ROUND, *LOSING_ROUND, *TIED_ROUND)
        for _ in range(3):
            session.start_round()
            session.stand()
            session.reset_for_new_round()

        assert session.stats.rounds_played == 3
        assert (session.stats.wins, session.stats.losses, session.stats.ties) == (1, 1, 1)
        assert session.credits == 210

    def test_cards_partitioned_through_a_round(self, stacked_session):
        session = stacked_session("2_of_hearts", "3_of_clubs", "4_of_spades")
        full = sorted(full_deck(), key=lambda c: c.identifier)

        for step in (session.start_round, session.hit, session.stand, session.reset_for_new_round):
            step()
            assert sorted(table_cards(session), key=lambda c: c.identifier) == full

    def test_subscriber_sees_card_drawn(self, stacked_session):
        session = stacked_session("9_of_hearts", "5_of_clubs")
        drawn = []
        session.subscribe(lambda e: drawn.append(e.data["card"]), EventType.CARD_DRAWN)
        session.start_round()
        assert drawn == ["9_of_hearts", "5_of_clubs"]
