"""Outgoing mail over SMTP.

``send`` never raises for delivery problems: it logs and returns
``False``, so a failing mail server does not turn a request into a 500::

    mail = Mail(config.mail)
    mail.send("ana@example.com", "Welcome", "<p>Hello Ana</p>")
    mail.send_template(["ana@example.com"], "emails/welcome", {"name": "Ana"}, "Welcome")
"""

import logging
import mimetypes
import smtplib
import ssl
from collections.abc import Iterable, Mapping
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from pathlib import Path
from typing import Any

from trindade.config import MailConfig
from trindade.errors import MailError

logger = logging.getLogger("trindade.mail")

Recipients = str | Iterable[str] | Mapping[str, str]
Attachment = str | Path | Mapping[str, Any]


def _addresses(recipients: Recipients | None) -> list[str]:
    """Normalize ``"a@x"``, ``["a@x", ...]`` or ``{"a@x": "Name"}``."""
    if not recipients:
        return []
    if isinstance(recipients, str):
        return [recipients]
    if isinstance(recipients, Mapping):
        return [formataddr((name, address)) for address, name in recipients.items()]
    return list(recipients)


class Mail:
    """SMTP mailer configured from ``MailConfig``.

    *templates* is anything with ``render(name, data) -> str``; the app
    passes its template environment so ``send_template`` can use views.
    """

    __slots__ = ("_config", "_templates")

    def __init__(self, config: MailConfig | None = None, templates: Any = None) -> None:
        self._config = config or MailConfig()
        if self._config.encryption not in ("tls", "ssl", "none", ""):
            msg = f"Unknown mail encryption {self._config.encryption!r}"
            raise MailError(msg)
        self._templates = templates

    @property
    def config(self) -> MailConfig:
        return self._config

    def build_message(
        self,
        to: Recipients,
        subject: str,
        body: str,
        cc: Recipients | None = None,
        bcc: Recipients | None = None,
        attachments: Iterable[Attachment] = (),
    ) -> EmailMessage:
        """Build the HTML message; Bcc is not written into the headers."""
        cfg = self._config
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((cfg.from_name, cfg.from_address)) if cfg.from_address else cfg.username
        msg["To"] = ", ".join(_addresses(to))
        if cc:
            msg["Cc"] = ", ".join(_addresses(cc))
        msg["Message-ID"] = make_msgid(domain=cfg.host or None)
        msg.set_content(body, subtype="html", charset="utf-8")

        for attachment in attachments:
            self._attach(msg, attachment)
        return msg

    @staticmethod
    def _attach(msg: EmailMessage, attachment: Attachment) -> None:
        if isinstance(attachment, Mapping):
            path = Path(attachment["path"])
            filename = attachment.get("name") or path.name
            ctype = attachment.get("type")
        else:
            path = Path(attachment)
            filename, ctype = path.name, None
        ctype = ctype or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        maintype, _, subtype = ctype.partition("/")
        msg.add_attachment(path.read_bytes(), maintype=maintype, subtype=subtype, filename=filename)

    def _connect(self) -> smtplib.SMTP:
        cfg = self._config
        if cfg.encryption == "ssl":
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                cfg.host, cfg.port, timeout=cfg.timeout, context=ssl.create_default_context()
            )
        else:
            smtp = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout)
        try:
            if cfg.debug:
                smtp.set_debuglevel(1)
            if cfg.encryption == "tls":
                smtp.starttls(context=ssl.create_default_context())
            if cfg.username:
                smtp.login(cfg.username, cfg.password)
        except BaseException:
            smtp.close()
            raise
        return smtp

    def send(
        self,
        to: Recipients,
        subject: str,
        body: str,
        cc: Recipients | None = None,
        bcc: Recipients | None = None,
        attachments: Iterable[Attachment] = (),
    ) -> bool:
        """Send an HTML mail. Returns ``True`` on success, ``False`` otherwise."""
        recipients = [*_addresses(to), *_addresses(cc), *_addresses(bcc)]
        if not recipients:
            logger.warning("Mail not sent: no recipients")
            return False
        try:
            message = self.build_message(to, subject, body, cc, bcc, attachments)
            with self._connect() as smtp:
                smtp.send_message(message, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Mail delivery failed: %s", exc, extra={"context": {"to": recipients}})
            return False
        logger.info("Mail sent: %s", subject, extra={"context": {"to": recipients}})
        return True

    def send_template(
        self,
        to: Recipients,
        template: str,
        data: Mapping[str, Any] | None = None,
        subject: str = "",
        **options: Any,
    ) -> bool:
        """Render *template* with *data* and send the result.

        Raises ``MailError`` when no template environment is available.
        """
        if self._templates is None:
            msg = "Mail.send_template needs a template environment"
            raise MailError(msg)
        body = self._templates.render(template, dict(data or {}))
        return self.send(to, subject, body, **options)
