"""Outgoing mail: relay abstraction, SMTP implementation and dispatcher."""
from garden_alerts.mail.dispatcher import MailDispatcher
from garden_alerts.mail.mailer_abc import MailerABC
from garden_alerts.mail.smtp_mailer import SmtpMailer

__all__ = ["MailDispatcher", "MailerABC", "SmtpMailer"]
