import asyncio
from dataclasses import dataclass


@dataclass
class SessionState:
    pending_action_id: str = ""


class SessionStore:
    """In-memory per-chat state: which action is waiting for a text input.

    Nothing is persisted; a restart forgets every pending action.
    """

    def __init__(self):
        self._sessions = {}
        self._locks = {}

    def get(self, chat_id) -> SessionState:
        state = self._sessions.get(chat_id)
        if state is None:
            state = self._sessions[chat_id] = SessionState()
        return state

    def set_pending_action(self, chat_id, action_id):
        self.get(chat_id).pending_action_id = action_id

    def clear_pending_action(self, chat_id):
        self.get(chat_id).pending_action_id = ""

    def evict(self, chat_id):
        self._sessions.pop(chat_id, None)
        self._locks.pop(chat_id, None)

    def lock(self, chat_id) -> asyncio.Lock:
        # asyncio.Lock wakes waiters in FIFO order, which keeps a chat's updates in arrival order
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = self._locks[chat_id] = asyncio.Lock()
        return lock

    def __contains__(self, chat_id):
        return chat_id in self._sessions

    def __len__(self):
        return len(self._sessions)
