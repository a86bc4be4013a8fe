"""Thread-safe, lock-step network for delivering SBP round messages."""

import threading
from typing import Any, Dict, Iterable, List

from data_models import ProofValue


class NetworkSimulator:
    """同步轮次网络模拟器 / Simulates simultaneous broadcast between registered participants.

    Messages sent during a round are only readable once the round has ended, so
    every participant's message is fixed before anyone observes another's.
    """

    def __init__(self) -> None:
        self.mailboxes: Dict[Any, Dict[Any, ProofValue]] = {}
        self.lock = threading.Lock()
        self.in_round = False
        self.current_round = 0
        self.delivered_count = 0

    def register_participant(self, participant_id: Any) -> None:
        """注册参与者邮箱 / Register a participant mailbox."""
        with self.lock:
            if self.in_round:
                raise RuntimeError("Cannot register participants during a round")
            if participant_id in self.mailboxes:
                raise ValueError(f"Participant {participant_id} is already registered")
            self.mailboxes[participant_id] = {}

    @property
    def participants(self) -> List[Any]:
        return list(self.mailboxes)

    def start_round(self, round_number: int) -> None:
        """开始新一轮并清空邮箱 / Begin a round with empty mailboxes."""
        with self.lock:
            if self.in_round:
                raise RuntimeError(f"Round {self.current_round} already started")
            self.in_round = True
            self.current_round = round_number
            for participant_id in self.mailboxes:
                self.mailboxes[participant_id] = {}

    def send(self, sender_id: Any, receivers: Iterable[Any], message: ProofValue) -> None:
        """发送消息给接收者 / Deliver ``message`` to each registered receiver."""
        with self.lock:
            if not self.in_round:
                raise RuntimeError("Not in a started round")
            for receiver_id in receivers:
                mailbox = self.mailboxes.get(receiver_id)
                if mailbox is not None:
                    mailbox[sender_id] = message
                    self.delivered_count += 1

    def end_round(self) -> None:
        with self.lock:
            if not self.in_round:
                raise RuntimeError("Round already ended")
            self.in_round = False

    def receive_messages(self, participant_id: Any) -> Dict[Any, ProofValue]:
        """接收本轮消息 / Messages addressed to ``participant_id`` this round, by sender."""
        with self.lock:
            if self.in_round:
                raise RuntimeError("Messages are not readable until the round ends")
            return dict(self.mailboxes[participant_id])
