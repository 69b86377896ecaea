# app/utils/signatures.py
import hashlib
import hmac


def hmac_sha256_hex(secret: str, payload: bytes | str) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_hmac_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """
    Constant-time check of a hex HMAC-SHA256 signature over a raw body.

    Returns False for a missing signature instead of raising.
    """
    if not signature or not secret:
        return False
    expected = hmac_sha256_hex(secret, payload)
    return hmac.compare_digest(expected, signature.strip().lower())
