"""
Vote Source Adapters

Boundary collaborators that supply votes to the reconciler:
- LocalVoteStore: per-variant JSON slots on disk
- RemoteVoteFetcher: one HTTP GET against the collection endpoint
- files: import/export of the flat text table
"""

from .local_store import LocalVoteStore
from .remote import RemoteVoteFetcher, FetchResult, FetchStatus
from .files import is_importable, import_files, export_file

__all__ = [
    'LocalVoteStore',
    'RemoteVoteFetcher',
    'FetchResult',
    'FetchStatus',
    'is_importable',
    'import_files',
    'export_file',
]
