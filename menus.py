import logging
from dataclasses import dataclass

import telegram
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from bot_logging import log_action
from errors import UnknownAction

# Menu identifiers carried as the prefix of every callback payload
ROOT_MENU = "action"
NEXT_MENU = "next"
MENU_PATTERN = rf"^({ROOT_MENU}|{NEXT_MENU})(:|$)"

MAIN_TEXT = "What do you want to do?"
BACK_TEXT = "Back"
NO_ACTION_CHOSEN = "No action chosen!"


@dataclass(frozen=True)
class MenuSelection:
    menu: str
    action_id: str


def encode_callback(menu, action_id):
    return f"{menu}:{action_id}"


def decode_callback(data) -> MenuSelection:
    """Turn raw callback data into a MenuSelection or fail with UnknownAction."""
    if not isinstance(data, str):
        raise UnknownAction(NO_ACTION_CHOSEN)
    menu, sep, action_id = data.partition(":")
    if menu not in (ROOT_MENU, NEXT_MENU):
        raise UnknownAction(f"Unknown menu: {menu!r}")
    if not sep or not action_id:
        raise UnknownAction(NO_ACTION_CHOSEN)
    return MenuSelection(menu, action_id)


def render_action_menu(registry) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(action.name, callback_data=encode_callback(ROOT_MENU, action.id))]
        for action in registry.list_actions()
    ])


def render_back_menu(action_id) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(BACK_TEXT, callback_data=encode_callback(NEXT_MENU, action_id))]
    ])


class MenuStateMachine:
    """Two-level inline menu: the action list (root) and a back control (next).

    Picking an action records it as the chat's pending action; going back
    only redraws the list and leaves the pending action in place.
    """

    def __init__(self, registry, sessions):
        self.registry = registry
        self.sessions = sessions

    def select(self, chat_id, action_id):
        action = self.registry.get(action_id)
        self.sessions.set_pending_action(chat_id, action.id)
        return action.prompt_text, render_back_menu(action.id)

    def back(self, chat_id, action_id):
        self.registry.get(action_id)
        return MAIN_TEXT, render_action_menu(self.registry)

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        log_action(update, 'start')
        if update.message is None:
            return
        await update.message.reply_text(MAIN_TEXT, reply_markup=render_action_menu(self.registry))

    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        log_action(update, 'menu')
        query = update.callback_query
        chat_id = update.effective_chat.id
        # Answer before waiting on the chat lock; Telegram expires unanswered queries
        await query.answer()
        async with self.sessions.lock(chat_id):
            selection = decode_callback(query.data)
            if selection.menu == ROOT_MENU:
                text, markup = self.select(chat_id, selection.action_id)
            else:
                text, markup = self.back(chat_id, selection.action_id)
            await self._edit(query, text, markup)

    async def _edit(self, query, text, markup):
        try:
            await query.edit_message_text(text, parse_mode='HTML', reply_markup=markup)
        except telegram.error.BadRequest as e:
            if "Message is not modified" in str(e):
                return
            logging.error(f"Error editing menu message: {e}")
            raise
