"""User record manager and the records service it talks to."""

__version__ = "1.0.0"
