"""File-backed cookie jar used across requests of a session.

Sessions sharing one jar path must serialize access themselves; the store
does no locking.
"""

import os
from http.cookiejar import LoadError, MozillaCookieJar
from pathlib import Path

import structlog

from headfetch.fetch.errors import CookieJarNotWritableError


logger = structlog.get_logger()


class CookieJarStore:
    """Loads and saves a Netscape-format cookie file."""

    def __init__(self, path: Path | str) -> None:
        """Initialize the store.

        Args:
            path: Location of the cookie file.
        """
        self._path = Path(path)
        self._log = logger.bind(component="cookies", path=str(self._path))

    @property
    def path(self) -> Path:
        """Get the cookie file path."""
        return self._path

    def verify_writable(self) -> None:
        """Ensure the cookie file can be written, creating it if needed.

        An existing file must be writable. Otherwise its directory must be
        writable, and an empty jar file is created there.

        Raises:
            CookieJarNotWritableError: If neither condition holds.
        """
        if self._path.exists():
            if self._path.is_dir():
                raise CookieJarNotWritableError(str(self._path), "path is a directory")
            if not os.access(self._path, os.W_OK):
                raise CookieJarNotWritableError(str(self._path), "file is read-only")
            return

        directory = self._path.parent
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            raise CookieJarNotWritableError(
                str(directory), "directory missing or not writable"
            )

        try:
            MozillaCookieJar(str(self._path)).save()
        except OSError as e:
            raise CookieJarNotWritableError(str(self._path), str(e)) from e
        self._log.debug("cookie_jar_created")

    def load(self) -> MozillaCookieJar:
        """Load the jar from disk.

        Returns:
            Cookie jar bound to the store's path (empty if the file is
            missing or empty).
        """
        jar = MozillaCookieJar(str(self._path))
        if self._path.exists() and self._path.stat().st_size > 0:
            try:
                jar.load(ignore_discard=True, ignore_expires=True)
            except LoadError as e:
                self._log.warning("cookie_jar_unreadable", error=str(e))
        return jar

    def save(self, jar: MozillaCookieJar) -> None:
        """Persist cookies to disk.

        Args:
            jar: Jar to write.
        """
        jar.save(str(self._path), ignore_discard=True, ignore_expires=True)
        self._log.debug("cookie_jar_saved", cookies=len(jar))
