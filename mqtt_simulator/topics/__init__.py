"""
Topics - Registry + hot reload
"""
from .registry import (
    RegistrySnapshot,
    TopicEntry,
    TopicRegistry,
    document_format,
    load_document,
)
from .watcher import ChangeSource, FileWatcher, file_signature
from .reload import ReloadController

__all__ = [
    "RegistrySnapshot",
    "TopicEntry",
    "TopicRegistry",
    "document_format",
    "load_document",
    "ChangeSource",
    "FileWatcher",
    "file_signature",
    "ReloadController",
]
