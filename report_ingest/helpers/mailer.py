import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from html import escape
from typing import List

from report_ingest.commons.errors import NotificationFailure
from report_ingest.commons.logger import logger
from report_ingest.commons.types import MailCfg
from report_ingest.parsers.models import ClassifiedTest

SUBJECT = "🩺 Your DiagNexus Medical Report"

_CHIP = (
    '<span style="display:inline-block;padding:2px 8px;color:{fg};background-color:{bg};'
    'border-radius:12px;font-weight:bold;font-size:0.8em;">{label}</span>'
)

_TABLE = """
      <h3 style="color:{color};">{title}</h3>
      <table border="1" cellpadding="5" cellspacing="0" style="border-collapse: collapse; width: 100%;">
        <thead>
          <tr style="background-color:{header_bg};">
            <th>Test</th>
            <th>Value</th>
            <th>Reference Range</th>
            <th>Status</th>
          </tr>
        </thead>
        <tbody>{rows}
        </tbody>
      </table>
"""


def _num(x: float) -> str:
    return str(int(x)) if float(x).is_integer() else str(x)


def render_status_chip(status: int) -> str:
    if status == 1:
        return _CHIP.format(fg="#155724", bg="#d4edda", label="Normal")
    return _CHIP.format(fg="#721c24", bg="#f8d7da", label="Abnormal")


def render_rows(tests: List[ClassifiedTest]) -> str:
    rows = []
    for t in tests:
        value = f"{_num(t.value)} {escape(t.unit)}" if t.unit else _num(t.value)
        rows.append(
            "\n          <tr>"
            f"<td>{escape(t.test_type)}</td>"
            f"<td>{value}</td>"
            f"<td>{_num(t.minlimit)} - {_num(t.maxlimit)}</td>"
            f"<td>{render_status_chip(t.status)}</td>"
            "</tr>"
        )
    return "".join(rows)


def render_report_html(critical: List[ClassifiedTest], normal: List[ClassifiedTest]) -> str:
    if critical:
        critical_html = _TABLE.format(
            color="red", title="🔴 Critical Tests", header_bg="#f8d7da", rows=render_rows(critical)
        )
    else:
        critical_html = "<p>No critical test results.</p>"

    normal_html = ""
    if normal:
        normal_html = _TABLE.format(
            color="green", title="✅ Normal Tests", header_bg="#d4edda", rows=render_rows(normal)
        )

    return (
        "<p>Hello,</p>\n"
        "<p>Your medical report is now available. Below is a summary:</p>\n"
        f"{critical_html}\n"
        f"{normal_html}\n"
        "<p>For a full report, please log in to your DiagNexus account.</p>\n"
        "<p>Regards,<br/>DiagNexus Team</p>\n"
    )


class ReportMailer:
    def __init__(self, cfg: MailCfg, smtp_factory=smtplib.SMTP):
        self.cfg = cfg
        self.smtp_factory = smtp_factory

    def build_message(
        self, to_address: str, critical: List[ClassifiedTest], normal: List[ClassifiedTest]
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = SUBJECT
        msg["From"] = formataddr((self.cfg.sender_name, self.cfg.user))
        msg["To"] = to_address
        msg["Message-ID"] = make_msgid(domain=(self.cfg.user.split("@")[-1] or None))
        msg.set_content("Your medical report is now available. Open this email in an HTML client.")
        msg.add_alternative(render_report_html(critical, normal), subtype="html")
        return msg

    def send(self, to_address: str, critical: List[ClassifiedTest], normal: List[ClassifiedTest]) -> str:
        msg = self.build_message(to_address, critical, normal)
        try:
            with self.smtp_factory(self.cfg.host, self.cfg.port) as smtp:
                if self.cfg.starttls:
                    smtp.starttls()
                if self.cfg.user and self.cfg.password:
                    smtp.login(self.cfg.user, self.cfg.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as ex:
            logger.error(f"Fallo enviando email a {to_address}: {ex}")
            raise NotificationFailure(f"Envío de email a {to_address} falló: {ex}") from ex
        logger.info(f"Email enviado a {to_address} | Message-ID: {msg['Message-ID']}")
        return msg["Message-ID"]
