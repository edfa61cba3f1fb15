"""htpasswd auth file used by the registry's basic authentication.

The registry only accepts bcrypt entries, so the password (the cluster-wide
salt) is hashed with bcrypt before it is written.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import bcrypt

from shared.observability import get_logger

logger = get_logger(__name__)


def build_htpasswd_entry(username: str, password: str, rounds: int = 5) -> str:
    """Return a single ``user:hash`` line."""
    if not username or ":" in username:
        raise ValueError("htpasswd username must be non-empty and must not contain ':'")
    hashed = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds))
    return f"{username}:{hashed.decode()}"


def verify_htpasswd_entry(entry: str, username: str, password: str) -> bool:
    """Check a line produced by :func:`build_htpasswd_entry`."""
    user, _, hashed = entry.strip().partition(":")
    if user != username or not hashed:
        return False
    return bcrypt.checkpw(password.encode(), hashed.encode())


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(content)
    tmp.replace(path)


async def write_auth_file(path: str | Path, username: str, password: str, rounds: int = 5) -> None:
    """(Re)write the auth file at ``path``.

    The file is replaced atomically so the running registry never reads a
    partially written file.
    """
    target = Path(path)
    entry = await asyncio.to_thread(build_htpasswd_entry, username, password, rounds)
    await asyncio.to_thread(_write_file, target, entry)
    logger.debug("Registry auth file written", path=str(target), username=username)
