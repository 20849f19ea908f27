"""
Exceptions raised by the Scribe agent.
"""


class ConfigurationError(Exception):
    """Raised when a required credential or setting is missing."""
    pass


class GenerationError(Exception):
    """Raised when the LLM stream fails or times out."""
    pass
