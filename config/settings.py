"""
Storefront - Centralized Configuration
=======================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL", "")

if not DATABASE_URL:
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME")

    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)

    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 💳 Payment Gateway
# ==========================================
PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "midtrans")
MIDTRANS_SERVER_KEY = os.getenv("MIDTRANS_SERVER_KEY", "")
MIDTRANS_IS_PRODUCTION = os.getenv("MIDTRANS_IS_PRODUCTION", "false").lower() == "true"
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS") or "15")


# ==========================================
# 🛒 Checkout
# ==========================================
ORDER_NUMBER_PREFIX = os.getenv("ORDER_NUMBER_PREFIX", "IQB")
CURRENCY = "IDR"
SHIPPING_COUNTRY = "Indonesia"
SOURCE_CHANNEL = "web"
PAYMENT_EXPIRY_HOURS = 24
TRANSACTION_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


# ==========================================
# ✉️ Notifications
# ==========================================
# SMTP (order confirmation email)
SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT") or "587")
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM = os.getenv("SMTP_FROM", "")

# WhatsApp HTTP bridge
WHATSAPP_HOST = os.getenv("WHATSAPP_HOST", "")
WHATSAPP_USERNAME = os.getenv("WHATSAPP_USERNAME", "")
WHATSAPP_PASSWORD = os.getenv("WHATSAPP_PASSWORD", "")

# Telegram (admin alerts)
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID", "")

NOTIFICATION_TIMEOUT_SECONDS = 10


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

# Base URL for callbacks and customer-facing links
BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")
