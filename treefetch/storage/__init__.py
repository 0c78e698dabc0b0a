"""
Persistence of discovered resources.
"""

from .dispatcher import DownloadDispatcher
from .persister import DownloadResult, FilePersister, download, file_name_for

__all__ = ['DownloadDispatcher', 'DownloadResult', 'FilePersister', 'download', 'file_name_for']
