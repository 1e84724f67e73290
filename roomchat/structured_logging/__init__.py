"""
Structured logging package for RoomChat.

All imports should use explicit paths like
'from roomchat.structured_logging.enhanced_logging_config import get_logger'.

The directory is named 'structured_logging' rather than 'logging' so it never
shadows the standard library 'logging' module.
"""

__all__: list[str] = []
