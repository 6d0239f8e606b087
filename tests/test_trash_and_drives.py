"""Tests for the trash delegate and volume listing."""

from __future__ import annotations

import os
from collections import namedtuple

import pytest

import diskrings.drives as drives
from diskrings.models import TrashError
from diskrings.trash import move_to_trash

Part = namedtuple("Part", "mountpoint fstype")
Usage = namedtuple("Usage", "total used free percent")


class TestMoveToTrash:
    def test_passes_absolute_path(self, sample_tree, monkeypatch):
        seen = []
        monkeypatch.setattr("diskrings.trash.send2trash", seen.append)
        move_to_trash(str(sample_tree / "sub"))
        assert seen == [str(sample_tree / "sub")]

    def test_missing_path(self, tmp_path):
        with pytest.raises(TrashError) as exc:
            move_to_trash(str(tmp_path / "ghost"))
        assert exc.value.path == str(tmp_path / "ghost")

    def test_platform_failure_is_wrapped(self, sample_tree, monkeypatch):
        def boom(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr("diskrings.trash.send2trash", boom)
        with pytest.raises(TrashError, match="Permission denied"):
            move_to_trash(str(sample_tree / "a.txt"))
        assert (sample_tree / "a.txt").exists()


class TestVolumes:
    def test_dedup_sort_and_skip_unreadable(self, monkeypatch):
        parts = [Part("/mnt/b", "ext4"), Part("/", "ext4"), Part("/", "ext4"), Part("", "tmpfs"), Part("/mnt/dead", "nfs")]

        def usage(path):
            if path.endswith("dead"):
                raise PermissionError(13, "denied")
            return Usage(100, 40, 60, 40.0)

        monkeypatch.setattr(drives.psutil, "disk_partitions", lambda all=False: parts)
        monkeypatch.setattr(drives.psutil, "disk_usage", usage)

        vols = drives.list_volumes()
        assert [v["mountpoint"] for v in vols] == ["/", "/mnt/b"]
        assert vols[0] == {"mountpoint": "/", "fstype": "ext4", "total": 100, "used": 40, "free": 60, "percent": 40.0}

    def test_root_always_listed_first_and_system_mounts_hidden(self, monkeypatch):
        parts = [Part("/System/Volumes/Data", "apfs"), Part("/Volumes/Backup", "apfs")]
        monkeypatch.setattr(drives.psutil, "disk_partitions", lambda all=False: parts)
        monkeypatch.setattr(drives.psutil, "disk_usage", lambda p: Usage(100, 40, 60, 40.0))

        vols = drives.list_volumes()
        assert [v["mountpoint"] for v in vols] == [os.path.abspath(os.sep), "/Volumes/Backup"]
        assert vols[0]["fstype"] == ""

    def test_volume_usage(self, monkeypatch):
        monkeypatch.setattr(drives.psutil, "disk_usage", lambda p: Usage(10, 4, 6, 40.0))
        assert drives.volume_usage("/")["free"] == 6

        def fail(p):
            raise FileNotFoundError(p)

        monkeypatch.setattr(drives.psutil, "disk_usage", fail)
        assert drives.volume_usage("/nowhere") is None
