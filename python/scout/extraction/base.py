"""
Collaborator boundaries consumed by the index builder.

The builder never parses source itself. It asks a SymbolExtractor for a
file's symbol tree and a stat function for size/mtime. Both are async so a
batch of files can be fanned out with asyncio.gather().
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from scout.models import SymbolInfo


@dataclass(frozen=True)
class FileStat:
    size: int
    modified_time: float  # POSIX timestamp


StatFunction = Callable[[str], Awaitable[FileStat]]


@runtime_checkable
class SymbolExtractor(Protocol):
    """
    Returns the hierarchical symbol tree of a single file.

    Implementations raise NoProviderError when they cannot handle the file
    type; any other exception is treated as a per-file extraction failure.
    """

    async def extract_symbols(
        self,
        file_path: str,
        include_children: bool = True,
        max_depth: int = 10,
        kind_filter: Optional[list[str]] = None,
    ) -> list[SymbolInfo]:
        ...


async def stat_file(file_path: str) -> FileStat:
    """Default stat collaborator: os.stat() off the event loop."""
    st = await asyncio.to_thread(os.stat, file_path)
    return FileStat(size=st.st_size, modified_time=st.st_mtime)
