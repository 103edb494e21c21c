"""
COURIER - Hashing Helpers

Stateless hashing, HMAC, Base64 and random-string helpers used to sign and
authenticate requests. None of these touch the request lifecycle.

Failure policy differs per function and is documented on each one.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from typing import Optional

from courier.core.errors import CryptoError
from courier.core.types import Header

logger = logging.getLogger(__name__)

# Algorithm name constants
HMAC_SHA512 = "HmacSHA512"
HMAC_SHA384 = "HmacSHA384"
HMAC_SHA256 = "HmacSHA256"
RSA = "RSA"
MD5 = "MD5"
SHA1 = "SHA1"
SHA256 = "SHA256"

# Random string alphabets
SPECIAL_CHARS = 0
NORMAL_CHARS = 1

SPECIAL_ALPHABET = (
    "+aZ,b:-@Yc!|0X*dWe'`V1.fUg=Th2S)i?RjQ(3$kP;l[O4mNn{M5o]L&pKq}6JrIs7_HtG~uF%8vEwD#x9Cy<BzA"
)
NORMAL_ALPHABET = "abcde0fghij1klmno2pqrst3uvwxy4zABCD5EFGHI6JKLMN7OPQRS8TUVWX9YZ"

FILE_READ_SIZE = 1024


def _hashlib_name(algorithm: str) -> str:
    """
    Map names such as "SHA256", "SHA-256", "HmacSHA256" or "SHA3-256" to
    their hashlib equivalents.
    """
    name = algorithm.strip().lower()
    if name.startswith("hmac"):
        name = name[4:]
    if name.startswith("sha3-"):
        return "sha3_" + name[5:]
    if name.startswith("sha-"):
        return "sha" + name[4:]
    if name == "sha":
        return "sha1"
    return name


def get_hash(text: str, algorithm: str) -> str:
    """
    Hash text with the given algorithm.

    Args:
        text: Text to hash (UTF-8)
        algorithm: Algorithm name, e.g. "MD5", "SHA1", "SHA256"

    Returns:
        Lowercase hex digest, or "" if the algorithm is not available
    """
    try:
        digest = hashlib.new(_hashlib_name(algorithm))
    except ValueError as e:
        logger.error(f"Unsupported hash algorithm {algorithm}: {e}")
        return ""
    digest.update(text.encode("utf-8"))
    return digest.hexdigest()


def hmac_digest(data: Optional[str], secret: Optional[str], algorithm: str) -> Optional[str]:
    """
    Compute an HMAC of data with secret.

    Args:
        data: Message (UTF-8)
        secret: Key (UTF-8)
        algorithm: e.g. "HmacSHA256"

    Returns:
        Lowercase hex MAC, or None if data/secret is missing or the
        algorithm is not available
    """
    if data is None or secret is None:
        return None

    try:
        mac = hmac.new(secret.encode("utf-8"), data.encode("utf-8"), _hashlib_name(algorithm))
    except ValueError as e:
        logger.error(f"Unsupported HMAC algorithm {algorithm}: {e}")
        return None
    return mac.hexdigest().lower()


def hmac_digest_binary(data: str, secret: str, algorithm: str) -> str:
    """
    Compute a raw HMAC, returned as a Latin-1 string so every byte survives.

    Args:
        data: Message (Latin-1)
        secret: Key (Latin-1)
        algorithm: e.g. "HmacSHA256"

    Raises:
        CryptoError: If the algorithm is unavailable or the input is not Latin-1
    """
    try:
        mac = hmac.new(
            secret.encode("latin-1"), data.encode("latin-1"), _hashlib_name(algorithm)
        )
    except ValueError as e:
        raise CryptoError(f"HMAC {algorithm} failed: {e}") from e
    return mac.digest().decode("latin-1")


def file_md5(path: str) -> str:
    """
    MD5 of a file's contents, read in small chunks.

    Returns:
        Lowercase hex digest, or "" if the file cannot be read
    """
    md5 = hashlib.md5()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(FILE_READ_SIZE), b""):
                md5.update(chunk)
    except OSError as e:
        logger.error(f"Could not digest {path}: {e}")
        return ""
    return md5.hexdigest()


def random_string(length: int, char_type: int = NORMAL_CHARS) -> str:
    """
    Generate a random string.

    Args:
        length: Number of characters
        char_type: SPECIAL_CHARS (89 characters including punctuation) or
            NORMAL_CHARS (62 alphanumerics)

    Returns:
        Random string of exactly `length` characters
    """
    alphabet = SPECIAL_ALPHABET if char_type == SPECIAL_CHARS else NORMAL_ALPHABET
    return "".join(secrets.choice(alphabet) for _ in range(length))


def to_base64(text: str) -> str:
    """URL-safe Base64 (with padding) of UTF-8 text."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def from_base64(text: str) -> str:
    """Decode URL-safe Base64 produced by to_base64()."""
    return base64.urlsafe_b64decode(text.encode("ascii")).decode("utf-8", errors="replace")


def to_base64_unpadded(text: str, encoding: str = "utf-8") -> str:
    """Standard Base64 of text in the given encoding, without "=" padding."""
    return base64.b64encode(text.encode(encoding)).decode("ascii").rstrip("=")


def basic_authentication(key: str, secret: str) -> Header:
    """
    Build an HTTP Basic Authorization header.

    Args:
        key: Username / key
        secret: Password / secret

    Returns:
        Header("Authorization", "Basic <base64(key:secret)>")
    """
    token = base64.b64encode(f"{key}:{secret}".encode("utf-8")).decode("ascii")
    return Header("Authorization", "Basic " + token.replace("\n", ""))
