"""
Relay protocol, roles and state synchronization
"""

from .protocol import ClientType, Role, parse_message, encode_message
from .credential_store import CredentialStore, InMemoryCredentialStore, FileCredentialStore

__all__ = [
    "ClientType",
    "Role",
    "parse_message",
    "encode_message",
    "CredentialStore",
    "InMemoryCredentialStore",
    "FileCredentialStore",
]
