MASKED_VALUE = "***REDACTED***"


def mask_token(token: str | None) -> str:
    """
    Render a secret for log lines: first and last three characters only.
    Short or missing values are fully masked.
    """
    if token is None or len(token) < 10:
        return MASKED_VALUE
    return f"{token[:3]}...{token[-3:]}"


def mask_email(email: str | None) -> str:
    """a***@example.com"""
    if not email or "@" not in email:
        return MASKED_VALUE
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"
