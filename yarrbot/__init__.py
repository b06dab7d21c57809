from .bot import YarrbotPlugin

__all__ = ["YarrbotPlugin"]
