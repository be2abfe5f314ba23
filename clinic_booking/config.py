import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

# Shared secret for /cron/* endpoints. When unset the endpoints are open.
CRON_SECRET = os.getenv("CRON_SECRET")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Clinic <onboarding@resend.dev>")

# Fernet key used to decrypt the Resend override key stored in site settings
# (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")
SETTINGS_ENCRYPTION_KEY = os.getenv("SETTINGS_ENCRYPTION_KEY")

# Cloudflare R2 Configuration (backup exports)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "backups")

# Reminder dispatch
REMINDER_BATCH_LIMIT = int(os.getenv("REMINDER_BATCH_LIMIT", "50"))
