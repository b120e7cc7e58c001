"""Unit tests for pkitree.utils.files module."""

import os
from pathlib import Path
import pytest

from pkitree.utils.files import read_bytes, write_bytes, parse_names_file


class TestReadBytes:
    """Tests for read_bytes function."""

    def test_read_existing_file(self, tmp_path):
        """Should read bytes from an existing PEM file."""
        pem_file = tmp_path / "host.crt"
        pem_file.write_bytes(b"-----BEGIN CERTIFICATE-----\n")

        assert read_bytes(pem_file) == b"-----BEGIN CERTIFICATE-----\n"

    def test_read_with_string_path(self, tmp_path):
        """Should accept string paths."""
        pem_file = tmp_path / "records.json"
        pem_file.write_bytes(b"[]")

        assert read_bytes(str(pem_file)) == b"[]"

    def test_read_nonexistent_file_exits(self, tmp_path):
        """Should exit when file doesn't exist."""
        with pytest.raises(SystemExit) as exc_info:
            read_bytes(tmp_path / "missing.json")
        assert exc_info.value.code == 1

    def test_read_directory_exits(self, tmp_path):
        """Should exit when the path is a directory."""
        with pytest.raises(SystemExit) as exc_info:
            read_bytes(tmp_path)
        assert exc_info.value.code == 1


class TestWriteBytes:
    """Tests for write_bytes function."""

    def test_write_to_new_file(self, tmp_path):
        """Should create and write to a new file."""
        key_file = tmp_path / "host.key"

        result = write_bytes(key_file, b"secret")

        assert result == key_file
        assert key_file.read_bytes() == b"secret"

    def test_private_key_permissions(self, tmp_path):
        """Should set file permissions to 0o600 by default."""
        key_file = tmp_path / "host.key"

        write_bytes(key_file, b"secret")

        assert os.stat(key_file).st_mode & 0o777 == 0o600

    def test_certificate_permissions(self, tmp_path):
        """Should respect a custom permission mode."""
        crt_file = tmp_path / "host.crt"

        write_bytes(crt_file, b"public", mode=0o644)

        assert os.stat(crt_file).st_mode & 0o777 == 0o644

    def test_refuses_to_overwrite(self, tmp_path):
        """Should exit when file exists and overwrite=False."""
        crt_file = tmp_path / "host.crt"
        crt_file.write_bytes(b"original")

        with pytest.raises(SystemExit) as exc_info:
            write_bytes(crt_file, b"new", overwrite=False)
        assert exc_info.value.code == 1
        assert crt_file.read_bytes() == b"original"

    def test_overwrite(self, tmp_path):
        crt_file = tmp_path / "host.crt"
        crt_file.write_bytes(b"original")

        write_bytes(crt_file, b"new", overwrite=True)

        assert crt_file.read_bytes() == b"new"

    def test_creates_parent_dirs(self, tmp_path):
        """Should create parent directories when create_dirs=True."""
        crt_file = tmp_path / "certs" / "hosts" / "host.crt"

        write_bytes(crt_file, b"content", create_dirs=True)

        assert crt_file.read_bytes() == b"content"

    def test_missing_parent_dir_exits(self, tmp_path):
        """Should exit when parent directory doesn't exist and create_dirs=False."""
        with pytest.raises(SystemExit) as exc_info:
            write_bytes(tmp_path / "nowhere" / "host.crt", b"content", create_dirs=False)
        assert exc_info.value.code == 1

    def test_non_atomic(self, tmp_path):
        """Should write directly when atomic=False."""
        crt_file = tmp_path / "host.crt"

        write_bytes(crt_file, b"content", atomic=False)

        assert crt_file.read_bytes() == b"content"

    def test_returns_path_for_string(self, tmp_path):
        result = write_bytes(str(tmp_path / "host.crt"), b"content")
        assert isinstance(result, Path)


class TestParseNamesFile:
    """Tests for parse_names_file function."""

    def test_one_name_per_line(self, tmp_path):
        names_file = tmp_path / "hosts.txt"
        names_file.write_bytes(b"server1.example.com\nserver2.example.com\n")

        assert list(parse_names_file(names_file)) == ["server1.example.com", "server2.example.com"]

    def test_ignores_comments_and_blank_lines(self, tmp_path):
        """Should skip empty lines and lines starting with #."""
        names_file = tmp_path / "hosts.txt"
        names_file.write_bytes(b"# web tier\n\nserver1.example.com\n\n# db tier\nserver2.example.com\n")

        assert list(parse_names_file(names_file)) == ["server1.example.com", "server2.example.com"]

    def test_strips_whitespace(self, tmp_path):
        names_file = tmp_path / "hosts.txt"
        names_file.write_bytes(b"  server1.example.com  \n\t server2.example.com \t\n")

        assert list(parse_names_file(names_file)) == ["server1.example.com", "server2.example.com"]

    def test_unicode_names(self, tmp_path):
        """Internationalised names are passed through untouched."""
        names_file = tmp_path / "hosts.txt"
        names_file.write_bytes("münchen.example.com\n".encode("utf-8"))

        assert list(parse_names_file(names_file)) == ["münchen.example.com"]

    def test_empty_file(self, tmp_path):
        names_file = tmp_path / "hosts.txt"
        names_file.write_bytes(b"")

        assert list(parse_names_file(names_file)) == []
