"""
TaskHub Backend — Password Hashing
====================================

bcrypt hashing and verification. Both calls are CPU-bound (tens of ms at the
default work factor), so they run in Starlette's threadpool instead of on the
event loop.
"""

import bcrypt
from starlette.concurrency import run_in_threadpool

from taskhub.config import settings


def _hash(password: str, rounds: int) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def _verify(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        # Corrupt hash or >72-byte input
        return False


async def hash_password(password: str) -> str:
    return await run_in_threadpool(_hash, password, settings.bcrypt_rounds)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(_verify, password, password_hash)
