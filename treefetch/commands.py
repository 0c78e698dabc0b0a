"""
Line-oriented command loop for interactive mode.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Union

from .storage.persister import FilePersister

QUIT_WORDS = ('q', 'quit')
PROMPT = '> '


@dataclass(frozen=True)
class DownloadCommand:
    url: str
    outfile: str


@dataclass(frozen=True)
class QuitCommand:
    pass


@dataclass(frozen=True)
class EmptyCommand:
    pass


Command = Union[DownloadCommand, QuitCommand, EmptyCommand]


def parse_command(line: str, default_outfile: str) -> Command:
    """
    Parse one input line.

    ``URL [OUTFILE]`` downloads, ``q``/``quit`` stops, a blank line does
    nothing. Extra words after OUTFILE are ignored.
    """
    words = line.split()
    if not words:
        return EmptyCommand()

    if words[0].lower() in QUIT_WORDS:
        return QuitCommand()

    outfile = words[1] if len(words) > 1 else default_outfile
    return DownloadCommand(url=words[0], outfile=outfile)


async def run_interactive(persister: FilePersister, default_outfile: str,
                          read_line: Callable[[str], str] = input) -> int:
    """
    Prompt for commands until quit or end of input.

    A failed download stops the loop and its error propagates.

    Returns:
        Number of files downloaded
    """
    logger = logging.getLogger(__name__)
    downloaded = 0

    while True:
        try:
            line = await asyncio.to_thread(read_line, PROMPT)
        except EOFError:
            break

        command = parse_command(line, default_outfile)

        if isinstance(command, QuitCommand):
            break
        if isinstance(command, EmptyCommand):
            continue

        result = await persister.save(command.url, command.outfile)
        downloaded += 1
        logger.info(f"Saved {command.url} to {result.path} ({result.bytes_written} bytes)")

    return downloaded
