"""Ethereum address parsing and personal-message signature verification."""

from __future__ import annotations

import re

from Crypto.Hash import keccak

_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_HEX = re.compile(r"[0-9a-fA-F]*")
_Point = "tuple[int, int] | None"


class SignatureError(ValueError):
    """Raised when a signature cannot be parsed or recovered."""


def keccak256(data: bytes | str) -> bytes:
    """Return the Keccak-256 digest of the data (strings are UTF-8 encoded)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return keccak.new(digest_bits=256, data=data).digest()


def _decode_hex(text: str) -> bytes:
    if text.startswith("0x"):
        text = text[2:]
    if len(text) % 2 or not _HEX.fullmatch(text):
        raise ValueError(f"invalid hex string: {text!r}")
    return bytes.fromhex(text)


def parse_address(text: str) -> bytes:
    """Parse a 20-byte address from hex, with or without a 0x prefix."""
    raw = _decode_hex(text)
    if len(raw) != 20:
        raise ValueError(f"invalid address length: {len(raw)} bytes")
    return raw


def is_valid_address(text: str) -> bool:
    try:
        parse_address(text)
    except ValueError:
        return False
    return True


def hash_message(message: str | bytes) -> bytes:
    """Hash a message with the Ethereum personal-message prefix."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    prefix = f"\x19Ethereum Signed Message:\n{len(message)}".encode("utf-8")
    return keccak256(prefix + message)


def _add(a: _Point, b: _Point) -> _Point:
    if a is None:
        return b
    if b is None:
        return a
    x1, y1 = a
    x2, y2 = b
    if x1 == x2:
        if (y1 + y2) % _P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, _P) % _P
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, _P) % _P
    x3 = (slope * slope - x1 - x2) % _P
    return x3, (slope * (x1 - x3) - y1) % _P


def _multiply(scalar: int, point: _Point) -> _Point:
    result = None
    addend = point
    while scalar:
        if scalar & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        scalar >>= 1
    return result


def _recovery_parity(v: int) -> int:
    if v in (0, 1):
        return v
    if v in (27, 28):
        return v - 27
    if v >= 35:
        return (v - 1) % 2
    raise SignatureError(f"invalid recovery id: {v}")


def _signature_bytes(signature: str | bytes) -> bytes:
    if isinstance(signature, str):
        try:
            signature = _decode_hex(signature)
        except ValueError as exc:
            raise SignatureError(str(exc)) from exc
    if len(signature) != 65:
        raise SignatureError(f"invalid signature length: {len(signature)} bytes")
    return bytes(signature)


def recover_address(message_hash: bytes, signature: str | bytes) -> bytes:
    """Recover the signer's 20-byte address from a prehashed message."""
    if len(message_hash) != 32:
        raise SignatureError("message hash must be 32 bytes")
    raw = _signature_bytes(signature)
    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    parity = _recovery_parity(raw[64])
    if not (0 < r < _N and 0 < s < _N):
        raise SignatureError("signature scalars out of range")

    alpha = (pow(r, 3, _P) + 7) % _P
    y = pow(alpha, (_P + 1) // 4, _P)
    if y * y % _P != alpha:
        raise SignatureError("signature point is not on the curve")
    if y & 1 != parity:
        y = _P - y

    e = int.from_bytes(message_hash, "big") % _N
    r_inv = pow(r, -1, _N)
    public = _add(
        _multiply((-e * r_inv) % _N, _G),
        _multiply((s * r_inv) % _N, (r, y)),
    )
    if public is None:
        raise SignatureError("recovered point at infinity")
    encoded = public[0].to_bytes(32, "big") + public[1].to_bytes(32, "big")
    return keccak256(encoded)[12:]


def verify_message_signature(
    message: str | bytes, signature: str | bytes, owner: str | bytes
) -> bool:
    """Check that the personal-message signature was made by owner.

    Raises SignatureError when the signature itself cannot be parsed.
    """
    raw = _signature_bytes(signature)
    owner_bytes = parse_address(owner) if isinstance(owner, str) else bytes(owner)
    try:
        recovered = recover_address(hash_message(message), raw)
    except SignatureError:
        return False
    return recovered == owner_bytes