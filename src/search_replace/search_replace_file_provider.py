"""File access used by edit sessions that work on real files."""

from abc import ABC, abstractmethod
import logging
import os
from pathlib import Path
import tempfile

from search_replace.search_replace_exceptions import SearchReplaceFileError, SearchReplaceFileNotFoundError


class FileProvider(ABC):
    """Abstract source and sink for file content."""

    @abstractmethod
    def read(self, path: str) -> str:
        """
        Read a file.

        Args:
            path: Path of the file

        Returns:
            File content

        Raises:
            SearchReplaceFileNotFoundError: If the file does not exist
            SearchReplaceFileError: If the file cannot be read
        """

    @abstractmethod
    def write(self, path: str, content: str) -> None:
        """
        Write a file, replacing any existing content.

        Args:
            path: Path of the file
            content: New content

        Raises:
            SearchReplaceFileError: If the file cannot be written
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check whether a file exists."""


class LocalFileProvider(FileProvider):
    """Reads and writes files on the local filesystem."""

    def __init__(self, encoding: str = "utf-8", create_parents: bool = False, max_file_size_mb: int = 10):
        """
        Initialize the provider.

        Args:
            encoding: Text encoding for reads and writes
            create_parents: Create missing parent directories on write
            max_file_size_mb: Maximum file size in MB for reads and writes
        """
        self._encoding = encoding
        self._create_parents = create_parents
        self._max_file_size_bytes = max_file_size_mb * 1024 * 1024
        self._logger = logging.getLogger("LocalFileProvider")

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> str:
        file_path = Path(path)
        if not file_path.exists():
            raise SearchReplaceFileNotFoundError(f"File does not exist: {path}", {'path': path})

        if not file_path.is_file():
            raise SearchReplaceFileError(f"Path is not a file: {path}", {'path': path})

        file_size = file_path.stat().st_size
        if file_size > self._max_file_size_bytes:
            size_mb = file_size / (1024 * 1024)
            max_mb = self._max_file_size_bytes / (1024 * 1024)
            raise SearchReplaceFileError(f"File too large: {size_mb:.1f}MB (max: {max_mb:.1f}MB)", {'path': path})

        try:
            with open(file_path, 'r', encoding=self._encoding) as f:
                content = f.read()

        except UnicodeDecodeError as e:
            raise SearchReplaceFileError(
                f"Failed to decode file with encoding '{self._encoding}': {str(e)}", {'path': path}
            ) from e

        except PermissionError as e:
            raise SearchReplaceFileError(f"Permission denied reading file: {str(e)}", {'path': path}) from e

        except OSError as e:
            raise SearchReplaceFileError(f"Failed to read file: {str(e)}", {'path': path}) from e

        self._logger.debug("Read %d byte(s) from %s", file_size, path)
        return content

    def write(self, path: str, content: str) -> None:
        file_path = Path(path)
        content_size = len(content.encode(self._encoding))
        if content_size > self._max_file_size_bytes:
            size_mb = content_size / (1024 * 1024)
            max_mb = self._max_file_size_bytes / (1024 * 1024)
            raise SearchReplaceFileError(f"Content too large: {size_mb:.1f}MB (max: {max_mb:.1f}MB)", {'path': path})

        try:
            if self._create_parents:
                file_path.parent.mkdir(parents=True, exist_ok=True)

            if file_path.exists():
                desired_mode = file_path.stat().st_mode & 0o777

            else:
                umask = os.umask(0)
                os.umask(umask)
                desired_mode = 0o666 & ~umask

            # Write to a temporary file first, then rename over the target
            with tempfile.NamedTemporaryFile(
                mode='w',
                encoding=self._encoding,
                dir=file_path.parent,
                delete=False,
                suffix='.tmp'
            ) as tmp_file:
                tmp_file.write(content)
                tmp_path = Path(tmp_file.name)

            tmp_path.replace(file_path)
            file_path.chmod(desired_mode)

        except PermissionError as e:
            raise SearchReplaceFileError(f"Permission denied writing file: {str(e)}", {'path': path}) from e

        except OSError as e:
            raise SearchReplaceFileError(f"Failed to write file: {str(e)}", {'path': path}) from e

        self._logger.debug("Wrote %d byte(s) to %s", content_size, path)
