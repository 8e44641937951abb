"""Collaborators for resumable, verified binary installation."""

from .finalizer import promote_download
from .integrity import compute_file_sha256, hashes_match, size_matches
from .progress import ProgressCallback, ProgressThrottle
from .range_download import MAX_REDIRECTS, DownloadOutcome, RangeDownload

__all__ = [
    "MAX_REDIRECTS",
    "DownloadOutcome",
    "ProgressCallback",
    "ProgressThrottle",
    "RangeDownload",
    "compute_file_sha256",
    "hashes_match",
    "promote_download",
    "size_matches",
]
