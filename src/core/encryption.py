"""Customer data encryption compatible with the storefront's CryptoJS format.

The storefront encrypts the customer contact/shipping blob with
``CryptoJS.AES.encrypt(json, passphrase)``, which produces the OpenSSL
"Salted__" envelope: an 8-byte salt, a key and IV derived with
EVP_BytesToKey (MD5), AES-256-CBC and PKCS#7 padding, base64 encoded.
"""

import base64
import hashlib
import json
import os
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from src.core.config import get_settings

SALT_HEADER = b"Salted__"
KEY_SIZE = 32
IV_SIZE = 16


class EncryptionError(Exception):
    """Raised when customer data cannot be encrypted or decrypted."""


def _derive_key_and_iv(passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
    derived = b""
    block = b""
    while len(derived) < KEY_SIZE + IV_SIZE:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:KEY_SIZE], derived[KEY_SIZE:KEY_SIZE + IV_SIZE]


def _passphrase(key: str | None) -> bytes:
    passphrase = key if key is not None else get_settings().encryption_key
    if not passphrase:
        raise EncryptionError("ENCRYPTION_KEY is not configured")
    return passphrase.encode("utf-8")


def encrypt_customer_data(customer_data: dict[str, Any], key: str | None = None) -> str:
    """Encrypt a customer data dict into the CryptoJS passphrase format."""
    passphrase = _passphrase(key)
    salt = os.urandom(8)
    aes_key, iv = _derive_key_and_iv(passphrase, salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    plaintext = padder.update(json.dumps(customer_data).encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(plaintext) + encryptor.finalize()

    return base64.b64encode(SALT_HEADER + salt + ciphertext).decode("ascii")


def decrypt_customer_data(encrypted_data: str, key: str | None = None) -> dict[str, Any]:
    """Decrypt the customer data blob stored on an order.

    Args:
        encrypted_data: Base64 CryptoJS ciphertext.
        key: Optional passphrase; defaults to the configured encryption key.

    Returns:
        dict: Decrypted customer data (email, shippingAddress, ...).

    Raises:
        EncryptionError: If the key is missing or the data is corrupted.
    """
    passphrase = _passphrase(key)

    try:
        raw = base64.b64decode(encrypted_data)
    except (ValueError, TypeError) as e:
        raise EncryptionError(f"Failed to decrypt customer data: {e}") from e

    if not raw.startswith(SALT_HEADER) or len(raw) <= 16:
        raise EncryptionError("Failed to decrypt customer data: missing salt header")

    salt = raw[8:16]
    aes_key, iv = _derive_key_and_iv(passphrase, salt)

    try:
        decryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(raw[16:]) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return json.loads(plaintext.decode("utf-8"))
    except ValueError as e:
        # Wrong key surfaces as bad padding or undecodable JSON
        raise EncryptionError("Failed to decrypt customer data: invalid key or corrupted data") from e
