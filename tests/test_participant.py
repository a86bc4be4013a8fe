"""Tests for rational and malicious player behaviour, one round at a time."""

import logging

import pytest

from participant import DoneReason, MaliciousPlayer, RationalPlayer, active_players


def messages_from(scheme, shares, round_number):
    return {s.index: scheme.vrf_scheme.generate(s.private_key, round_number) for s in shares}


@pytest.fixture
def dealt(small_scheme, field, rng):
    secret = field.from_int(42)
    shares, definitive_round = small_scheme.deal_with_round(secret, rng)
    return secret, shares, definitive_round


class TestRationalPlayer:

    def test_initial_state(self, small_scheme, dealt):
        _, shares, _ = dealt
        player = small_scheme.make_rational_player(shares[0])
        assert player.done_reason() is None
        assert player.recovered_secret is None
        assert set(player.message_receivers()) == {s.index for s in shares}
        assert str(player) == "SBP Rational Player 1"

    def test_round_message_verifies(self, small_scheme, dealt):
        _, shares, _ = dealt
        player = small_scheme.make_rational_player(shares[0])
        message = player.round_message(3)
        assert small_scheme.vrf_scheme.verify(shares[0].public_keys[shares[0].index], 3, message)

    def test_recovers_in_definitive_round(self, small_scheme, dealt):
        secret, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        player.use_round_messages(r, messages_from(small_scheme, shares, r))
        assert player.recovered_secret == secret
        assert player.done_reason() is DoneReason.HAVE_SECRET
        assert player.round_message(r + 1) is None

    def test_no_recovery_in_other_rounds(self, small_scheme, dealt):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        player.use_round_messages(r + 1, messages_from(small_scheme, shares, r + 1))
        assert player.recovered_secret is None
        assert player.done_reason() is None
        assert player.cooperator_history == [5]

    def test_secret_is_write_once(self, small_scheme, dealt):
        secret, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        player.use_round_messages(r, messages_from(small_scheme, shares, r))
        player.use_round_messages(r + 1, {})
        assert player.recovered_secret == secret
        assert player.cooperator_history == [5]

    def test_silent_senders_pruned(self, small_scheme, dealt):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        player.use_round_messages(r + 1, messages_from(small_scheme, shares[:4], r + 1))
        assert player.cooperator_indexes == {s.index for s in shares[:4]}
        assert player.cooperator_history == [4]

    def test_pruned_sender_stays_pruned(self, small_scheme, dealt):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        player.use_round_messages(r + 1, messages_from(small_scheme, shares[:4], r + 1))
        player.use_round_messages(r + 2, messages_from(small_scheme, shares, r + 2))
        assert shares[4].index not in player.cooperator_indexes
        assert player.cooperator_history == [4, 4]

    def test_cooperators_shrink_monotonically(self, small_scheme, dealt):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        for offset, count in enumerate([5, 4, 4, 3], start=1):
            round_number = r + offset
            player.use_round_messages(round_number, messages_from(small_scheme, shares[:count], round_number))
        history = player.cooperator_history
        assert all(a >= b for a, b in zip(history, history[1:]))

    def test_gives_up_below_threshold(self, small_scheme, dealt, caplog):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        with caplog.at_level(logging.INFO, logger="participant"):
            player.use_round_messages(r, messages_from(small_scheme, shares[:2], r))
        assert player.done_reason() is DoneReason.NOT_ENOUGH_COOPERATORS
        assert player.recovered_secret is None
        assert player.round_message(r + 1) is None
        assert "giving up" in caplog.text

        player.use_round_messages(r + 1, messages_from(small_scheme, shares, r + 1))
        assert len(player.cooperator_indexes) == 2
        assert player.cooperator_history == [2]

    def test_invalid_message_prunes_sender(self, small_scheme, dealt, rng):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        messages = messages_from(small_scheme, shares, r + 1)
        messages[shares[1].index] = small_scheme.vrf_scheme.random_malicious_value(rng)
        player.use_round_messages(r + 1, messages)
        assert shares[1].index not in player.cooperator_indexes
        assert len(player.cooperator_indexes) == 4

    def test_replayed_message_prunes_sender(self, small_scheme, dealt):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        messages = messages_from(small_scheme, shares, r + 1)
        messages[shares[2].index] = small_scheme.vrf_scheme.generate(shares[2].private_key, r)
        player.use_round_messages(r + 1, messages)
        assert shares[2].index not in player.cooperator_indexes

    def test_unknown_sender_ignored(self, small_scheme, dealt, rng):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        messages = messages_from(small_scheme, shares, r + 1)
        messages["stranger"] = small_scheme.vrf_scheme.random_malicious_value(rng)
        player.use_round_messages(r + 1, messages)
        assert player.cooperator_indexes == {s.index for s in shares}

    def test_window_keeps_latest_round(self, small_scheme, dealt):
        _, shares, r = dealt
        player = small_scheme.make_rational_player(shares[0])
        for round_number in [r + 1, r + 2]:
            player.use_round_messages(round_number, messages_from(small_scheme, shares, round_number))
        assert {rn for rn, _ in player.received_points} == {r + 2}
        assert len(player.round_points(r + 2)) == 5

    def test_wider_window(self, small_scheme, field, dealt):
        _, shares, r = dealt
        player = RationalPlayer(shares[0], 3, field, small_scheme.vrf_scheme, window=2)
        for round_number in [r + 1, r + 2, r + 3]:
            player.use_round_messages(round_number, messages_from(small_scheme, shares, round_number))
        assert {rn for rn, _ in player.received_points} == {r + 2, r + 3}


class TestMaliciousPlayer:

    def test_silent(self, small_scheme, dealt):
        _, shares, _ = dealt
        player = small_scheme.make_silent_player(shares[0])
        assert player.round_message(1) is None
        assert player.message_receivers() == []
        assert player.done_reason() is DoneReason.MALICIOUS
        assert player.recovered_secret is None

    def test_noisy(self, small_scheme, dealt, rng):
        _, shares, _ = dealt
        player = small_scheme.make_random_message_player(shares[0], rng)
        assert isinstance(player, MaliciousPlayer)
        assert set(player.message_receivers()) == {s.index for s in shares[1:]}
        message = player.round_message(1)
        assert not small_scheme.vrf_scheme.verify(shares[0].public_keys[shares[0].index], 1, message)
        assert player.done_reason() is DoneReason.MALICIOUS


def test_active_players(small_scheme, dealt):
    _, shares, _ = dealt
    rational = small_scheme.make_rational_player(shares[0])
    silent = small_scheme.make_silent_player(shares[1])
    assert active_players([rational, silent]) == [rational]
