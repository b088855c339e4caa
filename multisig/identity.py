"""
Signer key management.

The ledger treats identities as opaque strings; these helpers produce them
from secp256k1 keys.
"""

import hashlib
from typing import List, Optional

from ecdsa import SECP256k1, SigningKey


class SignerKey:
    """secp256k1 key pair for a signer"""

    def __init__(self, private_key: Optional[bytes] = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    def public_key_hex(self) -> str:
        """Compressed public key in hex"""
        return self.public_key.to_string("compressed").hex()

    def address(self) -> str:
        """0x-prefixed 20-byte identity derived from the uncompressed public key"""
        digest = hashlib.sha256(self.public_key.to_string("uncompressed")[1:]).digest()
        return "0x" + digest[-20:].hex()

    def private_key_hex(self) -> str:
        return self.private_key.to_string().hex()

    @classmethod
    def from_hex(cls, private_hex: str) -> 'SignerKey':
        return cls(bytes.fromhex(private_hex))


def generate_signers(count: int) -> List[SignerKey]:
    """Generate ``count`` fresh signer keys"""
    if count < 1:
        raise ValueError(f"Need at least one signer, got {count}")
    return [SignerKey() for _ in range(count)]
