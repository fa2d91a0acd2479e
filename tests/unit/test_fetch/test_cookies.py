"""Unit tests for the cookie jar store."""

from http.cookiejar import Cookie, MozillaCookieJar
from pathlib import Path

import pytest

from headfetch.fetch.cookies import CookieJarStore
from headfetch.fetch.errors import CookieJarNotWritableError


def make_cookie(name: str, value: str) -> Cookie:
    """Build a session cookie for example.com."""
    return Cookie(
        version=0,
        name=name,
        value=value,
        port=None,
        port_specified=False,
        domain="example.com",
        domain_specified=False,
        domain_initial_dot=False,
        path="/",
        path_specified=True,
        secure=False,
        expires=None,
        discard=True,
        comment=None,
        comment_url=None,
        rest={},
    )


class TestVerifyWritable:
    """Tests for CookieJarStore.verify_writable."""

    def test_creates_missing_file(self, tmp_path: Path) -> None:
        """Test that a jar file is created in a writable directory."""
        path = tmp_path / "jar.txt"

        CookieJarStore(path).verify_writable()

        assert path.is_file()
        assert "Netscape HTTP Cookie File" in path.read_text()

    def test_existing_file_ok(self, tmp_path: Path) -> None:
        """Test that an existing writable file is accepted untouched."""
        path = tmp_path / "jar.txt"
        path.write_text("")

        CookieJarStore(path).verify_writable()

        assert path.read_text() == ""

    def test_directory_rejected(self, tmp_path: Path) -> None:
        """Test that a directory path is refused."""
        with pytest.raises(CookieJarNotWritableError, match="directory"):
            CookieJarStore(tmp_path).verify_writable()

    def test_missing_directory_rejected(self, tmp_path: Path) -> None:
        """Test that a file in a missing directory is refused."""
        with pytest.raises(CookieJarNotWritableError):
            CookieJarStore(tmp_path / "absent" / "jar.txt").verify_writable()


class TestLoadSave:
    """Tests for loading and saving cookies."""

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file gives an empty jar."""
        jar = CookieJarStore(tmp_path / "jar.txt").load()

        assert len(jar) == 0

    def test_save_keeps_session_cookies(self, tmp_path: Path) -> None:
        """Test that discardable cookies survive a save and load."""
        store = CookieJarStore(tmp_path / "jar.txt")
        jar = MozillaCookieJar()
        jar.set_cookie(make_cookie("sid", "42"))

        store.save(jar)
        loaded = store.load()

        assert [(c.name, c.value) for c in loaded] == [("sid", "42")]

    def test_corrupt_file_gives_empty_jar(self, tmp_path: Path) -> None:
        """Test that an unreadable file is ignored."""
        path = tmp_path / "jar.txt"
        path.write_text("this is not a cookie file\n")

        jar = CookieJarStore(path).load()

        assert len(jar) == 0
