import hashlib
import hmac

from app.utils.signatures import hmac_sha256_hex, verify_hmac_signature


def test_hmac_matches_stdlib_digest():
    expected = hmac.new(b"secret", b'{"a":1}', hashlib.sha256).hexdigest()
    assert hmac_sha256_hex("secret", '{"a":1}') == expected
    assert hmac_sha256_hex("secret", b'{"a":1}') == expected


def test_valid_signature_accepted_case_insensitively():
    body = b'{"reference":"R1"}'
    signature = hmac_sha256_hex("secret", body)
    assert verify_hmac_signature(body, signature, "secret")
    assert verify_hmac_signature(body, f" {signature.upper()} ", "secret")


def test_tampered_body_rejected():
    signature = hmac_sha256_hex("secret", b'{"amount":100}')
    assert not verify_hmac_signature(b'{"amount":900}', signature, "secret")


def test_missing_signature_or_secret_rejected():
    assert not verify_hmac_signature(b"{}", None, "secret")
    assert not verify_hmac_signature(b"{}", "", "secret")
    assert not verify_hmac_signature(b"{}", "abc", "")
