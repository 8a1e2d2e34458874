"""
stake_pool_updater.chain.signer

Minimal signing capability used to finalize transactions.

Responsibilities:
- Define the `Signer` contract (`pubkey()` + `sign_message(bytes)`).
- Provide the keypair-backed implementation loaded from configuration.
- Assemble a signed legacy transaction from a message and a set of signers.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Protocol

import base58
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction


class Signer(Protocol):
    def pubkey(self) -> Pubkey: ...

    def sign_message(self, message: bytes) -> Signature: ...


class KeypairSigner:
    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @classmethod
    def from_secret(cls, secret: str) -> KeypairSigner:
        """
        Accepts a base58 string or a JSON byte array (Solana CLI keyfile contents)
        holding the 64-byte secret key. Raises ValueError otherwise.
        """

        secret = secret.strip()
        if secret.startswith("["):
            try:
                raw = bytes(json.loads(secret))
            except (TypeError, ValueError) as e:
                raise ValueError("keypair JSON must be an array of bytes") from e
        else:
            raw = base58.b58decode(secret)
        if len(raw) != 64:
            raise ValueError(f"keypair must be 64 bytes, got {len(raw)}")
        return cls(Keypair.from_bytes(raw))

    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    def sign_message(self, message: bytes) -> Signature:
        return self._keypair.sign_message(message)

    def __repr__(self) -> str:
        # Never render key material.
        return f"KeypairSigner({self.pubkey()})"


def sign_transaction(message: Message, signers: Sequence[Signer]) -> Transaction:
    """
    Sign `message` with every required signer, in the order the message lists them.
    Raises ValueError if a required signer is missing.
    """

    by_key = {signer.pubkey(): signer for signer in signers}
    required = message.account_keys[: message.header.num_required_signatures]
    payload = bytes(message)

    signatures: list[Signature] = []
    for key in required:
        signer = by_key.get(key)
        if signer is None:
            raise ValueError(f"missing signer for {key}")
        signatures.append(signer.sign_message(payload))
    return Transaction.populate(message, signatures)
