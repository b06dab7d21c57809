from ..message import Message, MessageBuilder

DEFAULT_SOURCE_URL = "https://github.com/JoelDewey/yarrbot"

HELP_LINES = (
    ("Check that Yarrbot is online", "!yarrbot ping"),
    ("View this help message", "!yarrbot help"),
    ("Get the sourcecode for Yarrbot", "!yarrbot sourcecode"),
    ("Add a new webhook", "!yarrbot webhook add [sonarr|radarr] roomOrAliasId username [password]"),
    ("List configured webhooks", "!yarrbot webhook list [all]"),
    ("Remove a webhook", "!yarrbot webhook remove webhookId"),
)


def ping() -> Message:
    return Message.text("pong")


def help_message() -> Message:
    b = MessageBuilder()
    for desc, usage in HELP_LINES:
        b.add_key_value(desc, usage, code=True)
    return b.build()


def sourcecode(url: str = DEFAULT_SOURCE_URL) -> Message:
    return Message.text(f"The source code for this bot is available at: {url}")
