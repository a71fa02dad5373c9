import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./astro.db")

# Frontend base URL for payment return links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Optional shared counter store for rate limiting (in-process counters when unset)
REDIS_URL = os.getenv("REDIS_URL")

# Resend Email Configuration (primary)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "AstrobyAB <noreply@astrobyab.com>")

# SMTP Configuration (used when Resend is not configured)
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
SMTP_SECURE = os.getenv("SMTP_SECURE", "false").lower() == "true"

# Razorpay Configuration
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET")
RAZORPAY_API_URL = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")

# Cashfree Configuration
CASHFREE_APP_ID = os.getenv("CASHFREE_APP_ID")
CASHFREE_SECRET_KEY = os.getenv("CASHFREE_SECRET_KEY")
CASHFREE_API_VERSION = os.getenv("CASHFREE_API_VERSION", "2025-01-01")
# "sandbox" or "production" - production unless told otherwise, matching the dashboard keys
CASHFREE_ENV = os.getenv("CASHFREE_ENV", "production").lower()

# OTP policy
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "10"))
OTP_RESEND_COOLDOWN_SECONDS = int(os.getenv("OTP_RESEND_COOLDOWN_SECONDS", "60"))

# Insert the default service catalog on startup when the table is empty
SEED_SERVICES = os.getenv("SEED_SERVICES", "false").lower() == "true"
