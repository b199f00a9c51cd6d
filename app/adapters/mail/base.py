from abc import ABC, abstractmethod
from email.message import EmailMessage


class AbstractMailer(ABC):
    """Interface for outgoing mail transports."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Deliver a fully built message.

        Args:
            message: Message with From/To/Subject headers already set.

        Raises:
            EmailDeliveryError: If the message could not be handed off.
        """
        ...
