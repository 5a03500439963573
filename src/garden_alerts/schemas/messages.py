"""Outgoing message models."""
from pydantic import BaseModel, ConfigDict


class ComposedMessage(BaseModel):
    """A rendered email, ready for the mail relay."""

    model_config = ConfigDict(frozen=True)

    subject: str
    html: str
    text: str


class SendResult(BaseModel):
    """Outcome of one send attempt."""

    recipient: str
    success: bool
    detail: str = ""
