"""Tests for known-opponent scheduling.

CONTRACT:
    - 8 rounds x 4 slots, each pair at most once per round
    - Pairs only fill slots of their own match type
    - Slots no pair can fill are forfeits (win probability 0)
    - Per-round assignment maximizes the round's summed probability
"""

import math

import pytest

from lineuplab.data.schemas import FeatureBundle
from lineuplab.features import ContextBuilder
from lineuplab.models.pairing import Pair
from lineuplab.models.schedule import (
    KnownOpponentScheduler,
    aggregate_by_round,
    aggregate_by_schedule,
    aggregate_by_slot,
    assign_round,
    get_aggregator,
)
from lineuplab.models.scoring import SlotOutcome


def _scheduler(request, bundle, config, aggregation=None):
    return KnownOpponentScheduler(ContextBuilder(config).build(request, bundle), aggregation=aggregation)


def _mixed_pairing(roster):
    return tuple(Pair.of(m, f) for m, f in zip(roster["our_males"], roster["our_females"]))


def _gendered_pairing(roster):
    m, f = roster["our_males"], roster["our_females"]
    return (Pair.of(m[0], m[1]), Pair.of(m[2], m[3]), Pair.of(f[0], f[1]), Pair.of(f[2], f[3]))


def _balanced_pairing(roster):
    m, f = roster["our_males"], roster["our_females"]
    return (Pair.of(m[0], m[1]), Pair.of(f[0], f[1]), Pair.of(m[2], f[2]), Pair.of(m[3], f[3]))


class TestAssignRound:
    """assign_round() on hand-built probabilities."""

    def test_beats_greedy(self):
        p1, p2 = Pair.of("a", "b"), Pair.of("c", "d")
        table = {(p1, 0): 0.9, (p1, 1): 0.8, (p2, 0): 0.85, (p2, 1): 0.1}

        assignment = assign_round(
            [p1, p2], ["mixed", "mixed"],
            lambda pair, slot, _: SlotOutcome(table[(pair, slot)], 1.0),
        )

        assert [a[0] for a in assignment] == [p2, p1]

    def test_ineligible_slot_is_forfeit(self):
        p1 = Pair.of("a", "b")
        assignment = assign_round(
            [p1], ["mixed", "male"],
            lambda pair, slot, slot_type: SlotOutcome(0.6, 1.0) if slot_type == "mixed" else None,
        )
        assert assignment[0][0] == p1
        assert assignment[1] is None

    def test_forfeit_preferred_over_losing_expected_wins(self):
        p1, p2 = Pair.of("a", "b"), Pair.of("c", "d")
        table = {(p1, 0): 0.95, (p1, 1): 0.05, (p2, 0): 0.05}

        assignment = assign_round(
            [p1, p2], ["mixed", "mixed"],
            lambda pair, slot, _: (
                SlotOutcome(table[(pair, slot)], 1.0) if (pair, slot) in table else None
            ),
        )

        assert assignment[0][0] == p1
        assert assignment[1] is None
        total = sum(a[1].probability for a in assignment if a is not None)
        assert total >= 0.95

    def test_no_pairs(self):
        assert assign_round([], ["mixed"] * 4, lambda *_: None) == [None] * 4


class TestKnownOpponentScheduler:
    """KnownOpponentScheduler.score()"""

    def test_schedule_shape(self, known_request, bundle, no_adjustments, roster):
        score = _scheduler(known_request, bundle, no_adjustments).score(_balanced_pairing(roster))

        assert len(score.rounds) == 8
        for round_number, round_ in enumerate(score.rounds, start=1):
            assert round_.round_number == round_number
            assert [g.slot_number for g in round_.games] == [1, 2, 3, 4]
            used = [g.pair for g in round_.games if not g.forfeit]
            assert len(used) == len(set(used))

    def test_pairs_only_play_their_match_type(self, known_request, bundle, no_adjustments, roster):
        scheduler = _scheduler(known_request, bundle, no_adjustments)
        score = scheduler.score(_balanced_pairing(roster))
        for game in (g for r in score.rounds for g in r.games if not g.forfeit):
            assert scheduler.context.pair_type(game.pair) == game.match_type

    def test_all_mixed_pairs_forfeit_gendered_rounds(self, known_request, bundle, no_adjustments, roster):
        score = _scheduler(known_request, bundle, no_adjustments).score(_mixed_pairing(roster))
        games = [g for r in score.rounds for g in r.games]

        forfeits = [g for g in games if g.forfeit]
        assert len(forfeits) == 16
        assert all(g.match_type != "mixed" for g in forfeits)
        assert all(g.win_probability == 0.0 for g in forfeits)
        assert all(u.games == 4 for u in score.pair_usage)
        assert score.expected_wins == pytest.approx(sum(g.win_probability for g in games))

    def test_gendered_pairs_forfeit_mixed_rounds(self, known_request, bundle, no_adjustments, roster):
        score = _scheduler(known_request, bundle, no_adjustments).score(_gendered_pairing(roster))
        for round_ in score.rounds:
            mixed_round = round_.round_number % 2 == 1
            assert all(g.forfeit == mixed_round for g in round_.games)

    def test_balanced_pairing_forfeits_half_of_each_round(
        self, known_request, bundle, no_adjustments, roster
    ):
        score = _scheduler(known_request, bundle, no_adjustments).score(_balanced_pairing(roster))
        for round_ in score.rounds:
            assert len([g for g in round_.games if g.forfeit]) == 2
        assert all(u.games == 4 for u in score.pair_usage)

    def test_opponents_echoed(self, known_request, bundle, no_adjustments, roster):
        score = _scheduler(known_request, bundle, no_adjustments).score(_balanced_pairing(roster))
        first = score.rounds[0].games[0]
        assert first.opponent == tuple(sorted(roster["opp_mixed"][0]))
        assert first.to_dict()["opponentPlayerAId"] == first.opponent[0]

    def test_unknown_genders_fill_every_slot(self, known_request, bundle_payload, no_adjustments, roster):
        bundle_payload["players_catalog"] = []
        bundle = FeatureBundle.from_payload(bundle_payload)
        score = _scheduler(known_request, bundle, no_adjustments).score(_mixed_pairing(roster))

        assert not any(g.forfeit for r in score.rounds for g in r.games)
        assert sum(u.games for u in score.pair_usage) == 32

    def test_pair_usage_sorted(self, known_request, bundle, no_adjustments, roster):
        score = _scheduler(known_request, bundle, no_adjustments).score(_balanced_pairing(roster))
        counts = [u.games for u in score.pair_usage]
        assert counts == sorted(counts, reverse=True)
        assert sum(counts) == len([g for r in score.rounds for g in r.games if not g.forfeit])

    def test_unknown_aggregation_raises(self, known_request, bundle, no_adjustments):
        with pytest.raises(ValueError, match="Unknown aggregation"):
            _scheduler(known_request, bundle, no_adjustments, aggregation="weekly")

    @pytest.mark.parametrize("aggregation", ["round", "slot", "schedule"])
    def test_every_aggregation_scores(self, known_request, bundle, no_adjustments, roster, aggregation):
        score = _scheduler(known_request, bundle, no_adjustments, aggregation).score(
            _balanced_pairing(roster)
        )
        assert score.floor_wins_q20 >= 0.0
        assert score.volatility >= 0.0


class TestAggregators:
    """Floor / volatility aggregation."""

    def test_round_aggregation_constant_rounds(self):
        floor, volatility = aggregate_by_round([[0.5] * 4] * 8, 0.2)
        assert floor == pytest.approx(16.0)
        assert volatility == pytest.approx(0.0)

    def test_slot_aggregation(self):
        floor, volatility = aggregate_by_slot([[0.2, 0.8]] * 2, 0.2)
        assert floor == pytest.approx(0.8)
        assert volatility == pytest.approx(0.3 * 2)

    def test_schedule_aggregation(self):
        floor, volatility = aggregate_by_schedule([[0.5] * 4] * 8, 0.2)
        assert floor == float(int(floor))
        assert floor < 16.0
        assert volatility == pytest.approx(math.sqrt(8.0))

    def test_get_aggregator(self):
        assert get_aggregator("round") is aggregate_by_round
        assert get_aggregator("schedule") is aggregate_by_schedule
