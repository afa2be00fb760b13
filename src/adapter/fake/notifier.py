"""In-memory implementation of NotifierPort for testing."""

from dataclasses import dataclass


@dataclass
class SentMessage:
    to_address: str
    subject: str
    body: str


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[SentMessage] = []
        self.fail = fail

    def send(self, to_address: str, subject: str, body: str) -> bool:
        if self.fail:
            return False
        self.sent.append(SentMessage(to_address, subject, body))
        return True
