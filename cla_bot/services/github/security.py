import hashlib
import hmac
from typing import Optional


def verify_signature(
    payload_body: bytes, secret_token: str, signature_header: Optional[str]
) -> bool:
    """
    Check the X-Hub-Signature-256 header of a webhook delivery.

    Args:
        payload_body: raw request body bytes
        secret_token: the webhook secret configured on the GitHub App
        signature_header: the X-Hub-Signature-256 header value ("sha256=<hex>")

    Returns:
        True if the header matches the HMAC SHA-256 of the body.
    """
    if not signature_header:
        return False

    digest = hmac.new(
        secret_token.encode("utf-8"), msg=payload_body, digestmod=hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(f"sha256={digest}", signature_header)
