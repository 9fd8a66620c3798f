"""
Exceptions raised by the Zimtohrli engine.

Both concrete errors derive from ValueError so callers that already guard
against bad arguments keep working.
"""


class ZimtohrliError(Exception):
    """Base class for all engine errors"""


class InvalidInputError(ZimtohrliError, ValueError):
    """Input data cannot be processed (e.g. mismatched channel dimensions)"""


class ConfigurationError(ZimtohrliError, ValueError):
    """An analyzer parameter is outside its valid range"""
