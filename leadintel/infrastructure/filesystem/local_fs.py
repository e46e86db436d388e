"""Local file access for the CLI.

Reads conversation transcripts and lead files asynchronously with `aiofiles`.
"""

import json
import logging
from pathlib import Path
from typing import Any, Union

import aiofiles

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Reads input files from the local disk."""

    async def read_file(self, file_path: Union[str, Path]) -> str:
        """Reads a UTF-8 text file asynchronously.

        Raises:
            FileNotFoundError: If the path is not a file.
            PermissionError: If the file cannot be read.
        """
        path = Path(file_path)
        logger.debug(f"Attempting to read file: {path}")
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        try:
            async with aiofiles.open(path, mode='r', encoding='utf-8') as f:
                content = await f.read()
        except PermissionError as e:
            logger.error(f"Permission denied reading file: {path}")
            raise PermissionError(f"Permission denied: {file_path}") from e
        logger.debug(f"Successfully read {len(content)} characters from {path}")
        return content

    async def read_json(self, file_path: Union[str, Path]) -> Any:
        """Reads and decodes a JSON file.

        Raises:
            ValueError: If the file is not valid JSON.
        """
        content = await self.read_file(file_path)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {file_path}: {e}") from e
