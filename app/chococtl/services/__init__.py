"""Collaborator services consumed by the install orchestrator.

This module provides the collaborator contracts and their default
implementations (download, unpack, native installer, script sandbox).
"""

from chococtl.services.base import ArchiveUnpacker, Downloader, NativeInstaller, ScriptSandbox
from chococtl.services.download import HttpDownloader
from chococtl.services.scripts import PythonScriptSandbox, ScriptContext, find_install_script
from chococtl.services.unpack import ArchiveExtractor

__all__ = [
    "ArchiveExtractor",
    "ArchiveUnpacker",
    "Downloader",
    "HttpDownloader",
    "NativeInstaller",
    "PythonScriptSandbox",
    "ScriptContext",
    "ScriptSandbox",
    "find_install_script",
]
