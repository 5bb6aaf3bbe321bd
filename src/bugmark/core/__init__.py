"""Core bookmark model, reconciliation engine and record tree."""

from .errors import BugmarkError, ExternalUnavailable, NotFoundError, StructuralError
from .models import LocationFact
from .serializer import BookmarkStore, dump_tree, load_tree
from .tree import BookmarkNode, FolderNode, RecordNode, RootNode

__all__ = [
    "BugmarkError",
    "StructuralError",
    "NotFoundError",
    "ExternalUnavailable",
    "LocationFact",
    "RecordNode",
    "BookmarkNode",
    "FolderNode",
    "RootNode",
    "BookmarkStore",
    "dump_tree",
    "load_tree",
]
