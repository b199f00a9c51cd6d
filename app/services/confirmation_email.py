"""Confirmation email sent after a report download is granted."""

from __future__ import annotations

from email.message import EmailMessage

SUBJECT = "Your AI Implementation Report is Ready! \N{ROCKET}"

REPORT_HIGHLIGHTS = (
    "AI Implementation Roadmap",
    "ROI Calculation Framework",
    "25+ Real Case Studies",
    "Risk Mitigation Strategies",
    "Technology Stack Guide",
)


def _text_body() -> str:
    highlights = "\n".join(f"- {item}" for item in REPORT_HIGHLIGHTS)
    return (
        "Hi there,\n\n"
        "Your AI Implementation Report has been successfully downloaded. "
        "This comprehensive guide includes:\n\n"
        f"{highlights}\n\n"
        "If you have any questions about implementing AI in your business, "
        "our team is here to help!\n\n"
        "Best regards,\n"
        "The FlipTech Pro Team\n"
    )


def _html_body() -> str:
    highlights = "".join(f"<li>{item}</li>" for item in REPORT_HIGHLIGHTS)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #2563eb;">Thank you for downloading our AI Report!</h2>'
        "<p>Hi there,</p>"
        "<p>Your AI Implementation Report has been successfully downloaded. "
        "This comprehensive guide includes:</p>"
        f"<ul>{highlights}</ul>"
        "<p>If you have any questions about implementing AI in your business, "
        "our team is here to help!</p>"
        "<p>Best regards,<br>The FlipTech Pro Team</p>"
        "</div>"
    )


def build_confirmation_email(recipient: str, *, sender: str | None) -> EmailMessage:
    """Build the plain-text + HTML confirmation message for ``recipient``.

    Args:
        recipient: Address that requested the report.
        sender: From address; omitted from the headers when None.

    Returns:
        EmailMessage ready to hand to a mailer.
    """
    message = EmailMessage()
    if sender:
        message["From"] = sender
    message["To"] = recipient
    message["Subject"] = SUBJECT
    message.set_content(_text_body())
    message.add_alternative(_html_body(), subtype="html")
    return message
