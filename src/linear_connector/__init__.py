"""Linear connector: sync identities and access from Linear and provision changes back."""

__version__ = "0.1.0"
