import json
import logging
from dataclasses import dataclass, field
from typing import Any

from telegram import Update
from telegram.ext import ContextTypes

from actions import GET_BALANCE, PARSE_TX
from bot_logging import log_action
from errors import ExternalQueryFailure, InvalidInputFormat
from validators import check_signature


@dataclass(frozen=True)
class Success:
    payload: Any


@dataclass(frozen=True)
class Failure:
    detail: dict
    error: BaseException | None = field(default=None, compare=False)


async def run_query(query, argument):
    """Await a gateway coroutine and fold its result into Success or Failure."""
    try:
        return Success(await query(argument))
    except ExternalQueryFailure as e:
        return Failure(e.detail, e)
    except Exception as e:
        return Failure({"error": type(e).__name__, "message": str(e)}, e)


class InputDispatcher:
    """Routes a chat's plain text to the query of its pending action."""

    def __init__(self, sessions, get_balance, parse_swap, clear_after_dispatch=False):
        self.sessions = sessions
        self.get_balance = get_balance
        self.parse_swap = parse_swap
        self.clear_after_dispatch = clear_after_dispatch
        self.routes = {
            PARSE_TX: self._parse_transaction,
            GET_BALANCE: self._wallet_balance,
        }

    async def handle_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        message = update.message
        if message is None or message.text is None:
            return
        log_action(update, 'text')
        chat_id = update.effective_chat.id
        async with self.sessions.lock(chat_id):
            reply = await self.dispatch(chat_id, message.text)
            if reply is not None:
                await message.reply_text(reply)

    async def dispatch(self, chat_id, text):
        """Return the reply for `text`, or None when no action is pending."""
        action_id = self.sessions.get(chat_id).pending_action_id
        route = self.routes.get(action_id)
        if route is None:
            logging.debug(f"No pending action for chat {chat_id}, ignoring text")
            return None
        try:
            return await route(chat_id, text)
        except InvalidInputFormat as e:
            logging.info(f"Rejected input for {action_id} in chat {chat_id}: {e.reason}")
            return e.reason

    async def _parse_transaction(self, chat_id, text):
        result = check_signature(text)
        if not result.ok:
            raise InvalidInputFormat(result.reason)
        outcome = await run_query(self.parse_swap, text)
        self._finish(chat_id)
        if isinstance(outcome, Failure):
            logging.error(
                f"Error parsing swap transaction {text} for chat {chat_id}: {outcome.detail}",
                exc_info=outcome.error,
            )
            return json.dumps(outcome.detail)
        return json.dumps(outcome.payload)

    async def _wallet_balance(self, chat_id, text):
        # Address goes to the gateway unchecked; its errors reach the application error handler
        try:
            return await self.get_balance(text)
        finally:
            self._finish(chat_id)

    def _finish(self, chat_id):
        if self.clear_after_dispatch:
            self.sessions.clear_pending_action(chat_id)
