# app/infrastructure/cache/session_cache.py
"""
Durable conversation-id → session storage.

Two backends share the ``SessionStore`` contract:

* ``JsonFileSessionStore`` keeps every session in one JSON document
  (the default; survives restarts with no extra services).
* ``RedisSessionStore`` keeps one key per conversation (``wa:session:{id}``).

A missing or corrupt record comes back as a fresh default session.  Writes,
and per-key reads the backend cannot answer, raise ``SessionPersistenceError``
so the caller aborts the cycle before replying on state it never saw or saved.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Mapping

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError

from app.domain.models.session import ConversationSession


class SessionPersistenceError(RuntimeError):
    """The store could not durably save session state."""


def _default_session() -> ConversationSession:
    """Return a fresh default session (avoids shared mutable state)."""
    return ConversationSession()


def _parse_session(conversation_id: str, raw) -> ConversationSession | None:
    try:
        if isinstance(raw, (str, bytes)):
            return ConversationSession.model_validate_json(raw)
        return ConversationSession.model_validate(raw)
    except ValidationError as e:
        logger.warning("Discarding corrupt session for {}: {}", conversation_id, e)
        return None


def _dump_session(session: ConversationSession) -> dict:
    return session.model_dump(mode="json")


class SessionStore:
    """Base contract.  Subclasses implement whole-collection ``load``/``save``;
    per-key ``get``/``put`` default to a locked read-modify-write over them."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    async def load(self) -> Dict[str, ConversationSession]:
        raise NotImplementedError

    async def save(self, sessions: Mapping[str, ConversationSession]) -> None:
        raise NotImplementedError

    async def get(self, conversation_id: str) -> ConversationSession:
        sessions = await self.load()
        return sessions.get(conversation_id) or _default_session()

    async def put(self, conversation_id: str, session: ConversationSession) -> None:
        async with self._lock:
            sessions = await self.load()
            sessions[conversation_id] = session
            await self.save(sessions)


class JsonFileSessionStore(SessionStore):
    def __init__(self, path: str | os.PathLike):
        super().__init__()
        self.path = Path(path)

    async def load(self) -> Dict[str, ConversationSession]:
        # File I/O runs in the default executor so other chats keep flowing
        raw = await asyncio.get_running_loop().run_in_executor(None, self._read_file)
        if raw is None:
            return {}

        if not isinstance(raw, dict):
            logger.error("Sessions file {} is not a JSON object; ignoring it", self.path)
            return {}

        sessions: Dict[str, ConversationSession] = {}
        for conversation_id, record in raw.items():
            session = _parse_session(conversation_id, record)
            if session is not None:
                sessions[conversation_id] = session
        return sessions

    async def save(self, sessions: Mapping[str, ConversationSession]) -> None:
        payload = {cid: _dump_session(s) for cid, s in sessions.items()}
        try:
            await asyncio.get_running_loop().run_in_executor(None, self._write_file, payload)
        except OSError as e:
            raise SessionPersistenceError(f"Could not write {self.path}: {e}") from e

    def _read_file(self):
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.error("Could not read sessions file {}: {}", self.path, e)
            return None

    def _write_file(self, payload: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a half-written file
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisSessionStore(SessionStore):
    KEY_PREFIX = "wa:session:"

    def __init__(self, redis_url: str = "", client: redis.Redis | None = None):
        super().__init__()
        if client is None:
            if not redis_url:
                raise RuntimeError("REDIS_URL is not set")
            client = redis.from_url(redis_url, decode_responses=True)
        self._r = client

    def _key(self, conversation_id: str) -> str:
        return f"{self.KEY_PREFIX}{conversation_id}"

    async def load(self) -> Dict[str, ConversationSession]:
        sessions: Dict[str, ConversationSession] = {}
        try:
            async for key in self._r.scan_iter(match=f"{self.KEY_PREFIX}*"):
                conversation_id = key[len(self.KEY_PREFIX):]
                raw = await self._r.get(key)
                if not raw:
                    continue
                session = _parse_session(conversation_id, raw)
                if session is not None:
                    sessions[conversation_id] = session
        except RedisError as e:
            logger.error("Redis session load failed: {}", e)
            return {}
        return sessions

    async def save(self, sessions: Mapping[str, ConversationSession]) -> None:
        try:
            async with self._r.pipeline(transaction=True) as pipe:
                for conversation_id, session in sessions.items():
                    pipe.set(self._key(conversation_id), json.dumps(_dump_session(session)))
                await pipe.execute()
        except RedisError as e:
            raise SessionPersistenceError(f"Redis session save failed: {e}") from e

    async def get(self, conversation_id: str) -> ConversationSession:
        try:
            raw = await self._r.get(self._key(conversation_id))
        except RedisError as e:
            # Unknown state: abort rather than overwrite it with a default
            raise SessionPersistenceError(
                f"Redis session read failed for {conversation_id}: {e}"
            ) from e
        if not raw:
            return _default_session()
        return _parse_session(conversation_id, raw) or _default_session()

    async def put(self, conversation_id: str, session: ConversationSession) -> None:
        try:
            await self._r.set(self._key(conversation_id), json.dumps(_dump_session(session)))
        except RedisError as e:
            raise SessionPersistenceError(
                f"Redis session save failed for {conversation_id}: {e}"
            ) from e
