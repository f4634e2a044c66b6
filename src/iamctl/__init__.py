"""iamctl — identity and authorization administration backend."""

__version__ = "0.4.0"
