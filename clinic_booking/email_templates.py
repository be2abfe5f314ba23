"""
MJML Email Templates
Booking confirmation, reminder and thank-you emails for clinic clients
"""

import html
import re
from typing import Optional

# Clinic theme colors
THEME = {
    "primary": "#0f766e",
    "primary_light": "#ccfbf1",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render_template(template: str, values: dict[str, str]) -> str:
    """Replace {{key}} placeholders; unknown keys render as empty strings"""
    return PLACEHOLDER_PATTERN.sub(lambda m: str(values.get(m.group(1), "")), template)


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    site_name: str = "Clinic",
) -> str:
    """Base MJML template wrapper for all emails"""
    return f"""
    <mjml>
      <mj-head>
        <mj-title>{html.escape(title)}</mj-title>
        <mj-preview>{html.escape(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {html.escape(title)}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {html.escape(site_name)}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def appointment_details_section(date: str, time: str, service: str) -> str:
    """Boxed summary of the appointment"""
    return f"""
    <mj-text background-color="{THEME['primary_light']}" padding="16px" color="{THEME['text_primary']}">
      <strong>Date:</strong> {html.escape(date)}<br/>
      <strong>Time:</strong> {html.escape(time)}<br/>
      <strong>Service:</strong> {html.escape(service)}
    </mj-text>
    """


def booking_message_template(
    subject: str,
    body: str,
    date: Optional[str] = None,
    time: Optional[str] = None,
    service: Optional[str] = None,
    site_name: str = "Clinic",
) -> str:
    """
    Generic client-facing booking email.

    ``body`` is already rendered from the settings template; it is escaped
    here and line breaks are preserved.
    """
    paragraphs = "".join(
        f"<mj-text>{html.escape(line)}</mj-text>" for line in body.splitlines() if line.strip()
    )
    details = appointment_details_section(date, time, service) if date and time and service else ""

    return get_base_template(
        title=subject,
        preview_text=body[:120],
        content_sections=paragraphs + details,
        site_name=site_name,
    )
