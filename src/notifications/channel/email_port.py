"""Email channel port: abstract interface for customer email dispatch."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        reference: str | None = None,
    ) -> dict:
        """Send an email message.

        ``reference`` identifies what the message is about (e.g.
        ``<order_id>:order_paid``) so providers and tests can spot repeats.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
