import re
from typing import Optional

DEFAULT_COUNTRY_CODE = "1"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: Optional[str], country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Normalize a free-form phone number into something Twilio will dial.

    - "+..." is assumed to already be E.164 and is returned unchanged.
    - 10 digits get the default country code: "5551234567" → "+15551234567".
    - 10 digits prefixed with the country code get a "+": "15551234567" → "+15551234567".
    - Anything else returns None and the recipient is skipped.

    US-centric: numbers from other countries must be stored with a leading "+".
    """
    if raw is None:
        return None

    text = str(raw).strip()
    if not text:
        return None

    if text.startswith("+"):
        return text

    digits = _NON_DIGITS.sub("", text)

    if len(digits) == 10:
        return f"+{country_code}{digits}"
    if len(digits) == 10 + len(country_code) and digits.startswith(country_code):
        return f"+{digits}"

    return None
