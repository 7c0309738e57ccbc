"""Tests for tx3next.utils.filesystem module."""

from pathlib import Path

from tx3next.utils.filesystem import (
    copy_directory,
    copy_file,
    ensure_directory,
    is_writable_directory,
    missing_parents,
    read_text_file,
    remove_directory,
    remove_empty_directories,
    remove_file,
    write_text_file,
)


class TestEnsureDirectory:
    """Tests for ensure_directory function."""

    def test_creates_nested_directories(self, temp_dir: Path):
        """Creates nested directories."""
        nested_dir = temp_dir / "a" / "b" / "c"

        result = ensure_directory(nested_dir)

        assert nested_dir.is_dir()
        assert result == nested_dir

    def test_existing_directory_is_fine(self, temp_dir: Path):
        """Existing directory is left alone."""
        assert ensure_directory(temp_dir) == temp_dir


class TestCopyFile:
    """Tests for copy_file function."""

    def test_copies_bytes(self, temp_dir: Path):
        """Copies content exactly."""
        src = temp_dir / "src.json"
        src.write_bytes(b'{\r\n  "a": 1\r\n}')

        dest = copy_file(src, temp_dir / "out" / "dest.json")

        assert dest.read_bytes() == b'{\r\n  "a": 1\r\n}'

    def test_copies_into_directory(self, temp_dir: Path):
        """Copies into a directory under the source name."""
        src = temp_dir / "file.txt"
        src.write_text("x")
        target_dir = temp_dir / "target"
        target_dir.mkdir()

        dest = copy_file(src, target_dir)

        assert dest == target_dir / "file.txt"


class TestCopyDirectory:
    """Tests for copy_directory function."""

    def test_returns_written_files(self, temp_dir: Path):
        """Copies nested files and reports them."""
        src = temp_dir / "src"
        (src / "sub").mkdir(parents=True)
        (src / "a.toml").write_text("a")
        (src / "sub" / "b.toml").write_text("b")

        written = copy_directory(src, temp_dir / "dest")

        assert sorted(p.relative_to(temp_dir / "dest").as_posix() for p in written) == [
            "a.toml",
            "sub/b.toml",
        ]

    def test_keeps_unrelated_destination_files(self, temp_dir: Path):
        """Files already in the destination survive."""
        src = temp_dir / "src"
        src.mkdir()
        (src / "a.toml").write_text("new")
        dest = temp_dir / "dest"
        dest.mkdir()
        (dest / "a.toml").write_text("old")
        (dest / "keep.txt").write_text("keep")

        copy_directory(src, dest)

        assert (dest / "a.toml").read_text() == "new"
        assert (dest / "keep.txt").read_text() == "keep"


class TestRemove:
    """Tests for remove_directory and remove_file."""

    def test_remove_directory(self, temp_dir: Path):
        """Removes a directory tree."""
        target = temp_dir / "d"
        (target / "x").mkdir(parents=True)

        assert remove_directory(target) is True
        assert not target.exists()

    def test_remove_missing_directory(self, temp_dir: Path):
        """Returns False for a missing directory."""
        assert remove_directory(temp_dir / "missing") is False

    def test_remove_file(self, temp_dir: Path):
        """Removes a file."""
        target = temp_dir / "f.txt"
        target.write_text("x")

        assert remove_file(target) is True
        assert not target.exists()

    def test_remove_missing_file(self, temp_dir: Path):
        """Returns False for a missing file."""
        assert remove_file(temp_dir / "missing.txt") is False


class TestRemoveEmptyDirectories:
    """Tests for remove_empty_directories function."""

    def test_removes_deepest_first(self, temp_dir: Path):
        """Nested empty directories are all removed."""
        outer = temp_dir / "tx3"
        inner = outer / "bindings"
        inner.mkdir(parents=True)

        removed = remove_empty_directories([outer, inner])

        assert removed == [inner, outer]
        assert not outer.exists()

    def test_keeps_non_empty(self, temp_dir: Path):
        """Directories with content stay."""
        outer = temp_dir / "scripts"
        outer.mkdir()
        (outer / "keep.mjs").write_text("")

        assert remove_empty_directories([outer]) == []
        assert outer.exists()

    def test_ignores_missing(self, temp_dir: Path):
        """Missing directories are skipped."""
        assert remove_empty_directories([temp_dir / "gone"]) == []


class TestMissingParents:
    """Tests for missing_parents function."""

    def test_lists_outermost_first(self, temp_dir: Path):
        """Returns missing directories below root, outermost first."""
        path = temp_dir / "a" / "b" / "c"

        assert missing_parents(path, temp_dir) == [
            temp_dir / "a",
            temp_dir / "a" / "b",
            temp_dir / "a" / "b" / "c",
        ]

    def test_existing_parents_excluded(self, temp_dir: Path):
        """Existing directories are not listed."""
        (temp_dir / "a").mkdir()

        assert missing_parents(temp_dir / "a" / "b", temp_dir) == [temp_dir / "a" / "b"]

    def test_root_itself(self, temp_dir: Path):
        """Nothing is missing at the root."""
        assert missing_parents(temp_dir, temp_dir) == []


class TestTextFiles:
    """Tests for read_text_file and write_text_file."""

    def test_write_creates_parents(self, temp_dir: Path):
        """Writing creates parent directories."""
        path = temp_dir / "tx3" / "main.tx3"

        write_text_file(path, "party Sender;\n")

        assert read_text_file(path) == "party Sender;\n"

    def test_is_writable_directory(self, temp_dir: Path):
        """A fresh temp directory is writable; a file is not a directory."""
        file_path = temp_dir / "f.txt"
        file_path.write_text("")

        assert is_writable_directory(temp_dir) is True
        assert is_writable_directory(file_path) is False
        assert is_writable_directory(temp_dir / "missing") is False
