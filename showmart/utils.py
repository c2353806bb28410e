import logging
import secrets
from email.message import EmailMessage
from typing import Any, Optional

import aiosmtplib
import bcrypt
from email_validator import EmailNotValidError, validate_email

from showmart.core.config import BCRYPT_ROUNDS, EMAIL_PASSWORD, EMAIL_USER, SMTP_PORT, SMTP_SERVER

logger = logging.getLogger(__name__)

# bcrypt ignores everything past 72 bytes; newer releases raise instead
BCRYPT_MAX_BYTES = 72


# ---------------- Passwords ----------------
def _password_bytes(password: str) -> bytes:
    raw = password.encode("utf-8") if isinstance(password, str) else bytes(password)
    return raw[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), stored_hash.encode("utf-8"))
    except ValueError:
        logger.exception("Stored password hash is not a valid bcrypt value")
        return False


# ---------------- Mail ----------------
def _build_message(to_email: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = f"ShowMart <{EMAIL_USER}>"
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(body)
    return message


async def send_email(to_email: str, subject: str, body: str) -> Optional[Any]:
    """Send a plain-text mail over STARTTLS. Returns None when delivery fails."""
    if not SMTP_SERVER:
        logger.warning("SMTP_SERVER not configured; mail to %s not sent", to_email)
        return None
    try:
        response = await aiosmtplib.send(
            _build_message(to_email, subject, body),
            hostname=SMTP_SERVER,
            port=SMTP_PORT,
            start_tls=True,
            username=EMAIL_USER,
            password=EMAIL_PASSWORD,
        )
    except Exception as e:
        logger.exception("Mail to %s failed: %s", to_email, e)
        return None
    logger.info("Mail sent to %s: %s", to_email, response)
    return response


# ---------------- OTP / email ----------------
def generate_otp(length: int = 6) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def normalize_email(email: str) -> str:
    """Canonical form of an address, without a DNS deliverability check."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email: {e}")
