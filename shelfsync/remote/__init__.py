from shelfsync.remote.client import ShelfsyncClient
from shelfsync.remote.stores import HttpBookSearch, HttpBookStore, HttpShelfStore

__all__ = ["HttpBookSearch", "HttpBookStore", "HttpShelfStore", "ShelfsyncClient"]
