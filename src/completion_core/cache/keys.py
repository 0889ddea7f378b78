"""
Cache signature derivation.

A signature is the canonical JSON form of the parameters that influence a
completion. Keys are sorted at every nesting level and separators are fixed,
so equal parameter values always produce the same string.
"""

import hashlib
import json
from typing import Any, Mapping


def cache_signature(params: Mapping[str, Any]) -> str:
    """
    Serialize invocation parameters into a deterministic signature.

    Args:
        params: Effective parameters of a call, stop list included

    Returns:
        Sorted, compact JSON string
    """
    return json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)


def cache_digest(prompt: str, signature: str) -> str:
    """
    Fixed-length key for backends that cannot store arbitrary-length keys.

    The NUL separator keeps (signature, prompt) pairs from colliding when
    their concatenations happen to match.
    """
    return hashlib.sha256(f"{signature}\x00{prompt}".encode("utf-8")).hexdigest()
