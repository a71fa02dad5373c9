"""
MJML Email Templates
One-time code emails, compiled to HTML by email_service
"""

# Saffron/indigo scheme used across the site
THEME = {
    "primary": "#ea580c",
    "primary_dark": "#c2410c",
    "background": "#fff7ed",
    "card_bg": "#ffffff",
    "text_primary": "#1e1b4b",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#fed7aa",
}

BRAND_NAME = "AstrobyAB"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
) -> str:
    """Base MJML template wrapper for all emails"""
    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {BRAND_NAME} Vedic astrology consultations
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def otp_code_template(otp: str, intro: str, ttl_minutes: int) -> str:
    """One-time code MJML template"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      {intro}
    </mj-text>

    <mj-text align="center" font-size="36px" font-weight="700" letter-spacing="8px"
      color="{THEME['text_primary']}" font-family="monospace" padding="24px 0">
      {otp}
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      This code expires in {ttl_minutes} minutes.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request this, please ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Your verification code",
        preview_text=f"Your code is {otp}",
        content_sections=content,
    )


def signup_otp_template(otp: str, ttl_minutes: int) -> str:
    return otp_code_template(
        otp, f"Use this code to finish creating your {BRAND_NAME} account.", ttl_minutes
    )


def password_reset_otp_template(otp: str, ttl_minutes: int) -> str:
    return otp_code_template(otp, "Use this code to reset your password.", ttl_minutes)
