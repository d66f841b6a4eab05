"""
Archive storage: content-addressed object store plus the local index.
"""
from cidchat.storage.content_store import ContentStore
from cidchat.storage.index import ConversationIndex

__all__ = ["ContentStore", "ConversationIndex"]
