"""
Tests for startup validation and self-healing of the manifest.
"""

import json

from jdkkit.core.platform import Architecture
from jdkkit.core.version import JavaVersion
from jdkkit.installation.manager import JdkInstallationManager
from jdkkit.installation.request import ProvisionRequest
from tests.fixtures.jdks import LINUX_X64, FakeProvisioner, make_fake_jdk, write_manifest


def _start(base_dir, probe):
    return JdkInstallationManager(
        base_dir, FakeProvisioner(), probe=probe, platform=LINUX_X64
    )


def _read_manifest(base_dir):
    return json.loads((base_dir / "installations.json").read_text(encoding="utf-8"))


class TestPruning:
    """Test removal of dead records."""

    def test_prunes_missing_installation(self, base_dir, fake_probe, caplog):
        """Test records whose executable fails the probe are dropped."""
        make_fake_jdk(base_dir / "alive")
        write_manifest(
            base_dir,
            [
                {"version": "17.0.9+9", "isJdk": True, "path": "alive"},
                {"version": "21.0.1+12", "isJdk": True, "path": "deleted"},
            ],
        )

        manager = _start(base_dir, fake_probe)

        assert [r.path for r in manager.installations] == ["alive"]
        assert [e["path"] for e in _read_manifest(base_dir)] == ["alive"]
        assert "Removing installation 21.0.1+12" in caplog.text

    def test_absolute_paths_rewritten(self, base_dir, fake_probe):
        """Test absolute paths inside the base directory become relative."""
        make_fake_jdk(base_dir / "jdk17")
        write_manifest(
            base_dir,
            [{"version": "17.0.9+9", "isJdk": True, "path": str(base_dir / "jdk17")}],
        )

        manager = _start(base_dir, fake_probe)

        assert manager.installations[0].path == "jdk17"
        assert _read_manifest(base_dir)[0]["path"] == "jdk17"

    def test_legacy_manifest_migrated(self, base_dir, fake_probe):
        """Test a legacy manifest is rewritten in the list schema."""
        make_fake_jdk(base_dir / "jdk-17")
        write_manifest(
            base_dir,
            {"17.0.9+9": {"hash": "ab" * 32, "path": str(base_dir / "jdk-17")}},
        )

        manager = _start(base_dir, fake_probe)

        assert _read_manifest(base_dir) == [
            {"version": "17.0.9+9", "isJdk": True, "hash": "ab" * 32, "path": "jdk-17"}
        ]
        assert manager.find_jdk(JavaVersion.JAVA_17) == base_dir / "jdk-17"

    def test_corrupt_manifest_does_not_crash(self, base_dir, fake_probe, caplog):
        """Test a corrupt manifest is discarded and installations recovered."""
        make_fake_jdk(base_dir / "jdk17")
        (base_dir / "installations.json").write_text("{broken", encoding="utf-8")

        manager = _start(base_dir, fake_probe)

        assert [r.path for r in manager.installations] == ["jdk17"]
        assert "Failed to parse manifest" in caplog.text

    def test_corrupt_manifest_replaced(self, base_dir, fake_probe, caplog):
        """Test a discarded manifest is rewritten so it is not reported again."""
        (base_dir / "installations.json").write_text("{broken", encoding="utf-8")

        _start(base_dir, fake_probe)

        assert _read_manifest(base_dir) == []

        caplog.clear()
        manager = _start(base_dir, fake_probe)
        manager.provision_jdk(
            ProvisionRequest.builder().for_java_version(JavaVersion.JAVA_17).build()
        )

        assert "Failed to parse manifest" not in caplog.text


class TestRecovery:
    """Test recovery of directories missing from the manifest."""

    def test_recovers_orphaned_installation(self, base_dir, fake_probe):
        """Test an unknown runtime directory becomes a record."""
        make_fake_jdk(base_dir / "orphan", version="21.0.1+12", arch="aarch64", jdk=False)

        manager = _start(base_dir, fake_probe)

        [record] = manager.installations
        assert record.version == "21.0.1+12"
        assert record.is_jdk is False
        assert record.architecture == Architecture.AARCH64
        assert record.path == "orphan"
        assert record.hash is not None
        assert _read_manifest(base_dir)[0]["path"] == "orphan"

    def test_recovery_is_idempotent(self, base_dir, fake_probe):
        """Test a second startup adds no further records."""
        make_fake_jdk(base_dir / "orphan")

        first = _start(base_dir, fake_probe)
        second = _start(base_dir, fake_probe)

        assert len(first.installations) == 1
        assert second.installations == first.installations

    def test_recovers_one_level_down(self, base_dir, fake_probe):
        """Test runtimes nested in an archive-named directory are found."""
        make_fake_jdk(base_dir / "OpenJDK17U-jdk" / "jdk-17.0.9+9")

        manager = _start(base_dir, fake_probe)

        assert [r.path for r in manager.installations] == ["OpenJDK17U-jdk/jdk-17.0.9+9"]
        assert _start(base_dir, fake_probe).installations == manager.installations

    def test_nested_record_covers_parent(self, base_dir, fake_probe):
        """Test a record one level below a directory covers it."""
        make_fake_jdk(base_dir / "outer" / "jdk")
        write_manifest(base_dir, [{"version": "17.0.9+9", "isJdk": True, "path": "outer/jdk"}])

        manager = _start(base_dir, fake_probe)

        assert [r.path for r in manager.installations] == ["outer/jdk"]

    def test_ignores_non_runtime_directories(self, base_dir, fake_probe):
        """Test unrelated directories are left alone and never deleted."""
        (base_dir / "notes").mkdir()
        (base_dir / "notes" / "readme.txt").write_text("keep me")
        (base_dir / "stray.tar.gz").write_bytes(b"partial")

        manager = _start(base_dir, fake_probe)

        assert manager.installations == []
        assert (base_dir / "notes" / "readme.txt").read_text() == "keep me"
        assert (base_dir / "stray.tar.gz").exists()

    def test_skips_hidden_directories(self, base_dir, fake_probe):
        """Test hidden directories such as the lock directory are not scanned."""
        make_fake_jdk(base_dir / ".hidden")

        manager = _start(base_dir, fake_probe)

        assert manager.installations == []
        assert not any(".locks" in str(p) for p in fake_probe.probed)

    def test_pruning_keeps_files(self, base_dir, fake_probe):
        """Test pruning a broken installation does not delete it."""
        (base_dir / "broken" / "bin").mkdir(parents=True)
        write_manifest(base_dir, [{"version": "17.0.9+9", "isJdk": True, "path": "broken"}])

        manager = _start(base_dir, fake_probe)

        assert manager.installations == []
        assert (base_dir / "broken" / "bin").is_dir()
