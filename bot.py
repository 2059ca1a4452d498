import logging

from telegram import BotCommand, ChatMember, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    ChatMemberHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

import solana_api
from actions import ActionRegistry
from bot_logging import configure_logging, log_action
from config import BOT_TOKEN, CLEAR_PENDING_AFTER_DISPATCH, LOG_LEVEL
from dispatcher import InputDispatcher
from menus import MENU_PATTERN, MenuStateMachine
from sessions import SessionStore

HELP_TEXT = "Send /start to see and select actions."

BOT_COMMANDS = [
    BotCommand("start", "start to chat with bot"),
    BotCommand("help", "help for you to use this more correctly"),
]

registry = ActionRegistry()
sessions = SessionStore()
menu = MenuStateMachine(registry, sessions)
dispatcher = InputDispatcher(
    sessions,
    get_balance=solana_api.get_sol_balance_and_usd,
    parse_swap=solana_api.get_raydium_swap_parse_data,
    clear_after_dispatch=CLEAR_PENDING_AFTER_DISPATCH,
)

# Global application instance
app = None


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    log_action(update, 'help')
    if update.message is None:
        return
    await update.message.reply_text(HELP_TEXT)


async def forget_chat(update: Update, context: ContextTypes.DEFAULT_TYPE):
    # User blocked the bot or removed it from the chat: drop its session
    member = update.my_chat_member
    if member is None or member.new_chat_member.status not in (ChatMember.LEFT, ChatMember.BANNED):
        return
    log_action(update, 'forget_chat', member.new_chat_member.status)
    sessions.evict(update.effective_chat.id)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    # Last stop for anything a handler raised; the update is dropped without a reply
    logging.error(f"Error while handling update {update}: {context.error}", exc_info=context.error)


async def set_bot_commands(application: Application):
    await application.bot.set_my_commands(BOT_COMMANDS)


def get_application():
    """Get or create the Telegram application instance"""
    global app
    if app is None:
        if not BOT_TOKEN:
            raise ValueError("BOT_TOKEN environment variable is required")
        # Updates from different chats run concurrently; each chat is serialized by its session lock
        app = (
            ApplicationBuilder()
            .token(BOT_TOKEN)
            .concurrent_updates(True)
            .post_init(set_bot_commands)
            .build()
        )

        app.add_handler(CommandHandler("start", menu.start))
        app.add_handler(CommandHandler("help", help_command))
        app.add_handler(CallbackQueryHandler(menu.on_callback, pattern=MENU_PATTERN))
        app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, dispatcher.handle_text))
        app.add_handler(ChatMemberHandler(forget_chat, ChatMemberHandler.MY_CHAT_MEMBER))
        app.add_error_handler(error_handler)

    return app


def main():
    configure_logging(LOG_LEVEL)
    logging.info("Starting swap parser bot")
    get_application().run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
