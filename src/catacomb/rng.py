from __future__ import annotations

import hashlib
import json
import logging
import random
import secrets
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

Seed = Union[int, str, bytes]

REGION_DOMAIN = "region_graph"


def seed_bytes(seed: Seed) -> bytes:
    """Canonical byte form of a master seed (ints big-endian, strings UTF-8)."""
    if isinstance(seed, bytes):
        return seed
    if isinstance(seed, bool):
        raise TypeError(f"Unsupported seed type: {type(seed)!r}")
    if isinstance(seed, int):
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}")
        return seed.to_bytes((seed.bit_length() + 7) // 8 or 1, "big")
    if isinstance(seed, str):
        return seed.strip().encode("utf-8")
    raise TypeError(f"Unsupported seed type: {type(seed)!r}")


def derive_seed(master: Seed, domain: str, *identifiers: Any) -> int:
    """64-bit seed for ``domain`` and ``identifiers``, independent of call order.

    Two regions generated in parallel from the same master seed get unrelated
    streams because the region id is part of the hashed payload.
    """
    payload = json.dumps(
        {"master": seed_bytes(master).hex(), "domain": domain, "ids": list(identifiers)},
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.blake2b(payload.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    logger.debug("Derived seed domain=%s ids=%s -> %d", domain, identifiers, value)
    return value


def region_rng(master: Optional[Seed], region_id: str) -> random.Random:
    """Private ``random.Random`` for one region's generation run.

    Without a master seed a random one is drawn and logged so the run can be
    reproduced afterwards.
    """
    if master is None:
        master = secrets.token_hex(8)
        logger.info("No generation seed configured; using random seed %s", master)
    return random.Random(derive_seed(master, REGION_DOMAIN, region_id))
