"""
Tests for source scanning of environment variable usage.
"""

import tempfile
from pathlib import Path

import pytest
from envdoctor.core.config import Config, ScanningConfig
from envdoctor.core.discovery import make_app
from envdoctor.core.types import VariableDefinition
from envdoctor.core.usage import diagnose_usage, scan_app_usage, scan_text


class TestScanText:
    """Test the usage patterns."""

    def test_javascript_forms(self):
        content = (
            "const a = process.env.API_URL;\n"
            "const b = process.env['TOKEN'];\n"
            "const c = import.meta.env.VITE_KEY;\n"
        )
        assert scan_text(content) == [("API_URL", 1), ("TOKEN", 2), ("VITE_KEY", 3)]

    def test_python_forms(self):
        content = (
            'a = os.environ["DATABASE_URL"]\n'
            "b = os.environ.get('PORT', '3000')\n"
            'c = os.getenv("DEBUG")\n'
        )
        assert [name for name, _ in scan_text(content)] == ["DATABASE_URL", "PORT", "DEBUG"]

    def test_lowercase_names_are_ignored(self):
        assert scan_text("process.env.lower + process.env[name]") == []


def make_app_tree(tmpdir):
    root = Path(tmpdir) / "apps" / "web"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / ".next").mkdir()
    (root / "next.config.js").write_text("module.exports = { url: process.env.SITE_URL }\n")
    (root / "src" / "lib" / "db.ts").write_text("\nexport const url = process.env.DATABASE_URL\n")
    (root / "src" / "notes.md").write_text("process.env.IN_DOCS\n")
    (root / "src" / "env-doctor.ts").write_text("process.env.GENERATED\n")
    (root / "node_modules" / "pkg" / "index.js").write_text("process.env.VENDOR\n")
    (root / ".next" / "build.js").write_text("process.env.BUILD_ONLY\n")
    return make_app(root, Config())


class TestScanAppUsage:
    """Test which files are scanned."""

    def test_scans_source_dir_and_top_level(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            app = make_app_tree(tmpdir)

            usages = scan_app_usage(app, Config())

            assert set(usages) == {"SITE_URL", "DATABASE_URL"}
            assert usages["DATABASE_URL"][0].line == 2
            assert usages["DATABASE_URL"][0].file.name == "db.ts"

    def test_configured_extensions(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            app = make_app_tree(tmpdir)
            config = Config(scanning=ScanningConfig(extensions=[".md"]))

            assert set(scan_app_usage(app, config)) == {"IN_DOCS"}

    def test_missing_source_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            app = make_app(Path(tmpdir), Config())
            assert scan_app_usage(app, Config()) == {}


class TestDiagnoseUsage:
    """Test comparing usage with the schema."""

    def usages(self, *names):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "index.js"
            path.write_text("".join(f"process.env.{name}\n" for name in names))
            return scan_app_usage(make_app(Path(tmpdir), Config()), Config())

    def test_missing_and_unused(self):
        schema = [VariableDefinition(name="DATABASE_URL"), VariableDefinition(name="PORT")]

        result = diagnose_usage(self.usages("DATABASE_URL", "API_KEY"), schema, Config())

        assert list(result.missing) == ["API_KEY"]
        assert result.unused == ["PORT"]
        assert result.defined == ["DATABASE_URL", "PORT"]
        assert not result.ok

    def test_ignored_names(self):
        config = Config(scanning=ScanningConfig(ignore_missing=["VERCEL_URL"], ignore_unused=["PORT"]))
        schema = [VariableDefinition(name="PORT")]

        result = diagnose_usage(
            self.usages("NODE_ENV", "VERCEL_URL", "NETLIFY"), schema, config, ignore_missing={"NETLIFY"}
        )

        assert result.missing == {}
        assert result.unused == []
        assert result.ok


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
