"""
COURIER - RSA Signing

SHA256withRSA signatures over request payloads, and detection of the kind of
secret a caller was given (RSA private key vs. HMAC secret).
"""

import base64
import binascii
import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from courier.core.errors import SigningError
from courier.crypto.hashing import HMAC_SHA256, RSA

logger = logging.getLogger(__name__)

INVALID = "INVALID"
UNKNOWN = "UNKNOWN"


def _load_rsa_private_key(private_key_b64: str) -> rsa.RSAPrivateKey:
    """Load a Base64 PKCS#8 DER RSA private key."""

    key_bytes = base64.b64decode(private_key_b64, validate=True)
    key = serialization.load_der_private_key(key_bytes, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise TypeError("not an RSA private key")
    return key


def sign_rsa(data: str, private_key_b64: str) -> str:
    """
    Sign UTF-8 data with SHA256withRSA (PKCS#1 v1.5).

    Args:
        data: Text to sign
        private_key_b64: Base64-encoded PKCS#8 DER private key

    Returns:
        Base64 signature without "=" padding

    Raises:
        SigningError: If the key cannot be loaded or signing fails
    """
    try:
        key = _load_rsa_private_key(private_key_b64)
        signature = key.sign(data.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.error(f"RSA signing failed: {e}")
        raise SigningError(f"RSA signing failed: {e}") from e

    return base64.b64encode(signature).decode("ascii").rstrip("=")


def detect_secret_key_type(secret_key: str) -> str:
    """
    Guess what kind of secret a key is.

    Returns:
        "RSA" for a Base64 PKCS#8 RSA private key, "HmacSHA256" for a
        16-256 character secret, "INVALID" for an empty key, "UNKNOWN"
        otherwise
    """
    if secret_key is None or not secret_key.strip():
        return INVALID

    trimmed = secret_key.strip()

    # RSA keys are long Base64 strings starting with an ASN.1 SEQUENCE
    if len(trimmed) > 200:
        try:
            key_bytes = base64.b64decode(trimmed, validate=True)
        except binascii.Error:
            key_bytes = b""

        if len(key_bytes) > 10 and key_bytes[0] == 0x30 and key_bytes[1] in (0x81, 0x82):
            try:
                _load_rsa_private_key(trimmed)
                return RSA
            except (ValueError, TypeError, UnsupportedAlgorithm):
                pass

    if 16 <= len(trimmed) <= 256:
        return HMAC_SHA256

    return UNKNOWN
