"""Data node: answers framed MessagePack database statements from a master."""

__version__ = "0.1.0"