"""
Hashing Utilities — SHA-256 digests for the payment audit trail.
"""
import hashlib
import json


def generate_hash(data: dict) -> str:
    """SHA-256 of a dict serialized with sorted keys (datetimes via str)."""
    canonical = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def generate_chain_hash(current_data: dict, previous_hash: str = "") -> str:
    """Link an audit entry to its predecessor: SHA-256(previous_hash + hash(current))."""
    chain_input = f"{previous_hash}{generate_hash(current_data)}".encode("utf-8")
    return hashlib.sha256(chain_input).hexdigest()
