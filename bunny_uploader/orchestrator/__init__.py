"""Orchestrator package - coordinates upload workflows."""
from .core import UploadOrchestrator
from .file_collector import TreeEnumerator
from .folder_upload import FolderUploadOrchestrator, run_upload
from .retry import RetryPolicy

__all__ = [
    "UploadOrchestrator",
    "FolderUploadOrchestrator",
    "RetryPolicy",
    "TreeEnumerator",
    "run_upload",
]
