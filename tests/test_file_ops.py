"""Tests for filesystem/file_ops.py."""

import errno
import os

import pytest

from filesystem.file_ops import FileSystemOperations
from helpers import make_file
from utils.exceptions import ConfigurationError, DirectoryCreateError, MoveError


@pytest.fixture
def fs_ops():
    return FileSystemOperations(['.mp3', '.m4a', '.flac', '.wav'])


class TestDiscovery:

    def test_finds_supported_extensions_recursively(self, fs_ops, music_dir):
        make_file(music_dir / "a.mp3")
        make_file(music_dir / "sub" / "b.FLAC")
        make_file(music_dir / "sub" / "deeper" / "c.m4a")
        make_file(music_dir / "d.Wav")
        make_file(music_dir / "cover.jpg")
        make_file(music_dir / "notes.txt")
        make_file(music_dir / "mp3")

        found = fs_ops.discover_audio_files(music_dir)

        assert {p.name for p in found} == {"a.mp3", "b.FLAC", "c.m4a", "d.Wav"}

    def test_order_is_lexicographic_per_level(self, fs_ops, music_dir):
        for name in ["z.mp3", "b.mp3", "a.mp3"]:
            make_file(music_dir / name)
        make_file(music_dir / "y" / "x.mp3")
        make_file(music_dir / "c" / "x.mp3")

        found = [p.relative_to(music_dir).as_posix() for p in fs_ops.discover_audio_files(music_dir)]

        assert found == ["a.mp3", "b.mp3", "z.mp3", "c/x.mp3", "y/x.mp3"]

    def test_bare_extension_file_is_discovered(self, fs_ops, music_dir):
        make_file(music_dir / ".mp3")
        assert [p.name for p in fs_ops.discover_audio_files(music_dir)] == [".mp3"]

    def test_symlinks_are_skipped(self, fs_ops, music_dir, tmp_path):
        target = make_file(tmp_path / "elsewhere.mp3")
        (music_dir / "link.mp3").symlink_to(target)
        make_file(music_dir / "real.mp3")

        found = fs_ops.discover_audio_files(music_dir)

        assert [p.name for p in found] == ["real.mp3"]

    def test_missing_base_directory(self, fs_ops, tmp_path):
        with pytest.raises(ConfigurationError):
            fs_ops.discover_audio_files(tmp_path / "nope")

    def test_base_is_a_file(self, fs_ops, tmp_path):
        path = make_file(tmp_path / "file.mp3")
        with pytest.raises(ConfigurationError):
            fs_ops.discover_audio_files(path)


class TestEnsureDirectory:

    def test_creates_intermediate_directories(self, fs_ops, music_dir):
        target = music_dir / "a" / "b"
        fs_ops.ensure_directory(target, music_dir / "x.mp3")
        assert target.is_dir()

    def test_existing_directory_is_fine(self, fs_ops, music_dir):
        fs_ops.ensure_directory(music_dir, music_dir / "x.mp3")
        assert music_dir.is_dir()

    def test_file_in_the_way(self, fs_ops, music_dir):
        make_file(music_dir / "Album")
        with pytest.raises(DirectoryCreateError) as exc_info:
            fs_ops.ensure_directory(music_dir / "Album", music_dir / "x.mp3")
        assert exc_info.value.directory == str(music_dir / "Album")


class TestResolveCollision:

    def test_free_name(self, fs_ops, music_dir):
        source = make_file(music_dir / "x.mp3")
        assert fs_ops.resolve_collision(music_dir, "A - B.mp3", source) == "A - B.mp3"

    def test_existing_name_gets_counter(self, fs_ops, music_dir):
        source = make_file(music_dir / "x.mp3")
        make_file(music_dir / "A - B.mp3")
        make_file(music_dir / "A - B_1.mp3")
        assert fs_ops.resolve_collision(music_dir, "A - B.mp3", source) == "A - B_2.mp3"

    def test_source_itself_is_not_a_collision(self, fs_ops, music_dir):
        source = make_file(music_dir / "A - B.mp3")
        assert fs_ops.resolve_collision(music_dir, "A - B.mp3", source) == "A - B.mp3"

    def test_reserved_paths_count_as_taken(self, fs_ops, music_dir):
        source = make_file(music_dir / "x.mp3")
        reserved = {music_dir / "A - B.mp3"}
        assert fs_ops.resolve_collision(music_dir, "A - B.mp3", source, reserved) == "A - B_1.mp3"

    def test_missing_directory_has_no_collisions(self, fs_ops, music_dir):
        source = make_file(music_dir / "x.mp3")
        assert fs_ops.resolve_collision(music_dir / "New", "A.mp3", source) == "A.mp3"


class TestMoveNoClobber:

    def test_moves_file(self, fs_ops, music_dir):
        source = make_file(music_dir / "x.mp3", b"data")
        dest = music_dir / "y.mp3"

        fs_ops.move_no_clobber(source, dest)

        assert not source.exists()
        assert dest.read_bytes() == b"data"

    def test_refuses_to_overwrite(self, fs_ops, music_dir):
        source = make_file(music_dir / "x.mp3", b"new")
        dest = make_file(music_dir / "y.mp3", b"old")

        with pytest.raises(MoveError):
            fs_ops.move_no_clobber(source, dest)

        assert source.read_bytes() == b"new"
        assert dest.read_bytes() == b"old"

    def test_falls_back_when_hard_links_are_unsupported(self, fs_ops, music_dir, monkeypatch):
        source = make_file(music_dir / "x.mp3", b"data")
        dest = music_dir / "sub" / "y.mp3"
        dest.parent.mkdir()

        def no_links(src, dst):
            raise OSError(errno.EPERM, "Operation not permitted")

        monkeypatch.setattr(os, "link", no_links)
        fs_ops.move_no_clobber(source, dest)

        assert not source.exists()
        assert dest.read_bytes() == b"data"

    def test_fallback_still_refuses_to_overwrite(self, fs_ops, music_dir, monkeypatch):
        source = make_file(music_dir / "x.mp3", b"new")
        dest = make_file(music_dir / "y.mp3", b"old")

        def no_links(src, dst):
            raise OSError(errno.EXDEV, "Invalid cross-device link")

        monkeypatch.setattr(os, "link", no_links)
        with pytest.raises(MoveError):
            fs_ops.move_no_clobber(source, dest)

        assert dest.read_bytes() == b"old"

    def test_missing_source(self, fs_ops, music_dir):
        with pytest.raises(MoveError):
            fs_ops.move_no_clobber(music_dir / "gone.mp3", music_dir / "y.mp3")


class TestRemoveEmptyDirectories:

    def test_removes_nested_empty_directories(self, fs_ops, music_dir):
        (music_dir / "a" / "b" / "c").mkdir(parents=True)
        make_file(music_dir / "keep" / "song.mp3")

        removed = fs_ops.remove_empty_directories(music_dir)

        assert set(removed) == {music_dir / "a", music_dir / "a" / "b", music_dir / "a" / "b" / "c"}
        assert (music_dir / "keep" / "song.mp3").exists()
        assert music_dir.is_dir()

    def test_base_directory_is_kept(self, fs_ops, music_dir):
        assert fs_ops.remove_empty_directories(music_dir) == []
        assert music_dir.is_dir()
