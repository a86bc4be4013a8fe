"""Tests for the lock-step message network."""

import pytest

from data_models import ProofValue
from network_simulator import NetworkSimulator


@pytest.fixture
def network():
    net = NetworkSimulator()
    for pid in [1, 2, 3]:
        net.register_participant(pid)
    return net


class TestRegistration:

    def test_participants(self, network):
        assert network.participants == [1, 2, 3]

    def test_duplicate(self, network):
        with pytest.raises(ValueError):
            network.register_participant(1)

    def test_register_during_round(self, network):
        network.start_round(1)
        with pytest.raises(RuntimeError):
            network.register_participant(4)


class TestRounds:

    def test_delivery_after_round(self, network):
        message = ProofValue(b"p", 1)
        network.start_round(1)
        network.send(1, [2, 3], message)
        network.end_round()
        assert network.receive_messages(2) == {1: message}
        assert network.receive_messages(3) == {1: message}
        assert network.receive_messages(1) == {}
        assert network.delivered_count == 2

    def test_messages_hidden_during_round(self, network):
        network.start_round(1)
        network.send(1, [2], ProofValue(b"p", 1))
        with pytest.raises(RuntimeError):
            network.receive_messages(2)

    def test_send_outside_round(self, network):
        with pytest.raises(RuntimeError):
            network.send(1, [2], ProofValue(b"p", 1))

    def test_unknown_receiver_skipped(self, network):
        network.start_round(1)
        network.send(1, [2, 99], ProofValue(b"p", 1))
        network.end_round()
        assert network.delivered_count == 1

    def test_new_round_clears_mailboxes(self, network):
        network.start_round(1)
        network.send(1, [2], ProofValue(b"p", 1))
        network.end_round()
        network.start_round(2)
        network.end_round()
        assert network.receive_messages(2) == {}
        assert network.current_round == 2

    def test_received_dict_is_a_copy(self, network):
        network.start_round(1)
        network.send(1, [2], ProofValue(b"p", 1))
        network.end_round()
        network.receive_messages(2).clear()
        assert 1 in network.receive_messages(2)

    def test_round_state_errors(self, network):
        with pytest.raises(RuntimeError):
            network.end_round()
        network.start_round(1)
        with pytest.raises(RuntimeError):
            network.start_round(2)
