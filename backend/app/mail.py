# Overview: Minimal SMTP mailer extension rendering Jinja email templates.

"""
Outgoing mail.

Messages are addressed by template id: ``otp-email`` renders
``templates/email/otp-email.html`` (and ``.txt`` when present) with the
given variables through Flask's Jinja environment.

With MAIL_SUPPRESS_SEND enabled (tests, local development) nothing is
handed to SMTP; the rendered message is appended to ``outbox`` instead.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage

from flask import current_app, render_template
from jinja2 import TemplateNotFound


class MailDeliveryFailed(Exception):
    """Raised when the SMTP transport rejects or cannot deliver a message."""


@dataclass
class OutgoingMail:
    recipient: str
    subject: str
    template: str
    context: dict
    html: str
    text: str | None = None
    sender: str | None = None
    headers: dict = field(default_factory=dict)


class Mailer:
    def __init__(self, app=None):
        self.outbox: list[OutgoingMail] = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        app.config.setdefault("MAIL_SERVER", "localhost")
        app.config.setdefault("MAIL_PORT", 25)
        app.config.setdefault("MAIL_USERNAME", "")
        app.config.setdefault("MAIL_PASSWORD", "")
        app.config.setdefault("MAIL_USE_TLS", False)
        app.config.setdefault("MAIL_DEFAULT_SENDER", "no-reply@localhost")
        app.config.setdefault("MAIL_TIMEOUT", 10.0)
        app.config.setdefault("MAIL_SUPPRESS_SEND", app.testing)
        app.extensions["mailer"] = self

    def render(self, recipient: str, subject: str, template: str, context: dict) -> OutgoingMail:
        html = render_template(f"email/{template}.html", **context)
        try:
            text = render_template(f"email/{template}.txt", **context)
        except TemplateNotFound:
            text = None
        return OutgoingMail(
            recipient=recipient,
            subject=subject,
            template=template,
            context=dict(context),
            html=html,
            text=text,
            sender=current_app.config["MAIL_DEFAULT_SENDER"],
        )

    def send(self, recipient: str, subject: str, template: str, context: dict) -> OutgoingMail:
        """
        Render and deliver one message.

        Raises MailDeliveryFailed on any transport error.
        """
        mail = self.render(recipient, subject, template, context)

        if current_app.config["MAIL_SUPPRESS_SEND"]:
            self.outbox.append(mail)
            return mail

        msg = EmailMessage()
        msg["From"] = mail.sender
        msg["To"] = mail.recipient
        msg["Subject"] = mail.subject
        msg.set_content(mail.text or "")
        msg.add_alternative(mail.html, subtype="html")

        cfg = current_app.config
        try:
            with smtplib.SMTP(cfg["MAIL_SERVER"], cfg["MAIL_PORT"], timeout=cfg["MAIL_TIMEOUT"]) as smtp:
                if cfg["MAIL_USE_TLS"]:
                    smtp.starttls()
                if cfg["MAIL_USERNAME"]:
                    smtp.login(cfg["MAIL_USERNAME"], cfg["MAIL_PASSWORD"])
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryFailed(str(exc)) from exc

        return mail
