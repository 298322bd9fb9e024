"""Tenant token generation."""
import itertools
import os
import re
import secrets
import threading
import time
from typing import Optional

DEFAULT_TOKEN_PREFIX = "pest_test_"

# clock, pid, sequence and random fields as written by generate_tenant_token
_TOKEN_BODY = r"[0-9a-f]+_(?P<pid>[0-9a-f]+)_[0-9a-f]+_[0-9a-f]{8}(?![0-9a-f])"

_counter = itertools.count()
_counter_lock = threading.Lock()


def generate_tenant_token(prefix: str = DEFAULT_TOKEN_PREFIX) -> str:
    """
    Generate a unique tenant token for one test invocation.

    The token is ``prefix`` followed by lowercase hex fields: nanosecond wall
    clock, process id, a per-process sequence number and 32 random bits.
    The clock keeps tokens roughly sortable by creation time; the pid and
    sequence keep rapid calls in parallel workers apart even on clock skew.

    Args:
        prefix: Reserved marker recognised by orphan sweeps

    Returns:
        Token string, e.g. ``pest_test_1863f0c2a91b4e00_3f2a_0_9c41d2e7``
    """
    if not prefix:
        raise ValueError("Token prefix cannot be empty")

    with _counter_lock:
        sequence = next(_counter)

    return (
        f"{prefix}{time.time_ns():x}"
        f"_{os.getpid():x}"
        f"_{sequence:x}"
        f"_{secrets.token_hex(4)}"
    )


def token_owner_pid(name: str, prefix: str = DEFAULT_TOKEN_PREFIX) -> Optional[int]:
    """
    Process id embedded in a generated token found inside ``name``.

    ``name`` may be a bare token, a database file name such as
    ``tenant_<token>.sqlite-wal`` or a storage directory name.

    Returns:
        The pid, or None when ``name`` holds no token in the generated format
    """
    if not prefix:
        return None

    match = re.search(re.escape(prefix) + _TOKEN_BODY, name)
    if match is None:
        return None
    return int(match.group("pid"), 16)
