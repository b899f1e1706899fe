# tests/unit/core/test_security.py
import base64
import hashlib
import hmac

from stocksync.core.security import compute_signature, signature_is_valid


def test_compute_signature_matches_woocommerce_format():
    body = b'{"id": 1}'
    expected = base64.b64encode(hmac.new(b"s3cret", body, hashlib.sha256).digest()).decode()
    assert compute_signature(body, "s3cret") == expected


def test_signature_is_valid():
    body = b'{"id": 1}'
    assert signature_is_valid(body, compute_signature(body, "s3cret"), "s3cret")


def test_signature_rejects_tampered_body():
    signature = compute_signature(b'{"id": 1}', "s3cret")
    assert not signature_is_valid(b'{"id": 2}', signature, "s3cret")


def test_signature_rejects_missing_header():
    assert not signature_is_valid(b"{}", None, "s3cret")
    assert not signature_is_valid(b"{}", "", "s3cret")
