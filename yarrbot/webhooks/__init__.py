from .auth import WebhookAuthenticator, parse_basic_auth
from .relay import WebhookRelay, read_body
from .transformer import WebhookTransformer

__all__ = [
    "WebhookAuthenticator",
    "WebhookRelay",
    "WebhookTransformer",
    "parse_basic_auth",
    "read_body",
]
