"""Phone number normalization.

Best-effort rewrite to international format. This is not validation:
malformed numbers pass through and the SMS gateway may reject them.
"""

import re

from barqueue.core.config import settings

NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str, country_code: str = None) -> str:
    """
    Normalize a phone number to ``+<country><number>``.

    - A leading ``+`` means the number already carries a country code.
    - Digits starting with the country code just get the ``+``.
    - A trunk ``0`` is replaced by the country code.
    - Anything else is prefixed with the country code.

    Examples (country code 55):
        "11999998888"    -> "+5511999998888"
        "+1 555 1234"    -> "+15551234"
        "011 99999-8888" -> "+5511999998888"
    """
    cc = country_code or settings.sms_country_code
    text = (raw or "").strip()
    digits = NON_DIGITS.sub("", text)
    if not digits:
        return ""

    if text.startswith("+"):
        return "+" + digits
    if digits.startswith(cc):
        return "+" + digits
    if digits.startswith("0"):
        return "+" + cc + digits[1:]
    return "+" + cc + digits
