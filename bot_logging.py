import logging

LOG_FORMAT = '%(asctime)s %(levelname)s %(message)s'


def configure_logging(level="INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx logs every RPC request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Utility to log user actions
def log_action(update, handler_name, extra_info=None):
    user_id = getattr(update.effective_user, 'id', None)
    chat_id = getattr(update.effective_chat, 'id', None)
    msg = f"[Handler: {handler_name}] [User: {user_id}] [Chat: {chat_id}] "
    message = getattr(update, 'message', None)
    if message is not None and getattr(message, 'text', None):
        msg += f"[Text: {message.text[:100]}] "
    callback_query = getattr(update, 'callback_query', None)
    if callback_query is not None:
        msg += f"[Callback: {callback_query.data}] "
    if extra_info:
        msg += f"[Info: {extra_info}] "
    logging.info(msg.rstrip())
