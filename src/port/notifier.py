from typing import Protocol


class NotifierPort(Protocol):
    def send(self, to_address: str, subject: str, body: str) -> bool:
        """Deliver a plain-text message. Return True if it was handed off."""
        ...
