# healthchat/sessions.py
"""
In‑memory session store.

Each session stores a chronological transcript:
[{"role": "user"|"assistant", "content": "..."}, ...]

Transcripts live until the process exits. There is no persistence,
expiry, or size cap.
"""

import asyncio
from threading import Lock
from typing import Dict, List
import logging

logger = logging.getLogger(__name__)

Turn = Dict[str, str]


class SessionStore:
    """
    Map session ids to conversation transcripts.

    Functionality
    -------------
    1. Creates an empty transcript the first time a session id is seen.
    2. Guards the underlying dictionaries with a thread Lock.
    3. Hands out one `asyncio.Lock` per session id so a request can hold
       its session across read -> model call -> append. Requests on
       different sessions never wait on each other.
    """

    def __init__(self):
        self._transcripts: Dict[str, List[Turn]] = {}
        self._session_locks: Dict[str, asyncio.Lock] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._transcripts)

    def get_or_create(self, session_id: str) -> List[Turn]:
        """
        Retrieve (or lazily create) the transcript for a session.

        Parameters
        ----------
        session_id : str
            Identifier provided by the client to group chat turns.

        Returns
        -------
        list[dict]
            The stored transcript, by reference. Repeated calls for the
            same id return the same list.
        """
        with self._lock:
            if session_id not in self._transcripts:
                logger.debug("Creating transcript session=%s", session_id)
                self._transcripts[session_id] = []
            return self._transcripts[session_id]

    def lock(self, session_id: str) -> asyncio.Lock:
        """Return the exclusive lock for `session_id`."""
        with self._lock:
            return self._session_locks.setdefault(session_id, asyncio.Lock())

    def read(self, session_id: str) -> List[Turn]:
        """
        Snapshot of the transcript in insertion order.

        Unknown sessions read as empty; reading does not register them.
        """
        with self._lock:
            transcript = self._transcripts.get(session_id, [])
            return [dict(turn) for turn in transcript]

    def append(self, session_id: str, user_text: str, assistant_text: str) -> None:
        """
        Record one completed exchange.

        Parameters
        ----------
        session_id : str
            Session identifier. The transcript must already exist.
        user_text : str
            The user utterance that was sent to the model.
        assistant_text : str
            The model's reply.

        Raises
        ------
        KeyError
            If `get_or_create` was never called for `session_id`.
        """
        with self._lock:
            transcript = self._transcripts[session_id]
            transcript.append({"role": "user", "content": user_text})
            transcript.append({"role": "assistant", "content": assistant_text})
        logger.debug("Appended exchange session=%s turns=%d", session_id, len(transcript))

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._transcripts)
