"""Safety tests to ensure test suite doesn't modify production data.

These tests verify that running the test suite does NOT touch:
- ./data directory (uploaded PDFs)
- ./db directory (accounts and content database)

All tests MUST use temporary directories via pytest fixtures.
"""

import hashlib
import os
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).parent


def _hash_directory(path: Path) -> str | None:
    """Create a hash of directory structure and file sizes/mtimes.

    Returns None if directory doesn't exist.
    """
    if not path.exists():
        return None

    hasher = hashlib.sha256()

    for root, dirs, files in os.walk(path):
        # Sort for consistent ordering
        dirs.sort()
        files.sort()

        for filename in files:
            filepath = Path(root) / filename
            hasher.update(str(filepath.relative_to(path)).encode())

            stat = filepath.stat()
            hasher.update(str(stat.st_size).encode())
            hasher.update(str(int(stat.st_mtime)).encode())

    return hasher.hexdigest()


class TestDataDirectorySafety:
    """Tests ensuring ./data is never modified by test suite."""

    @pytest.fixture(scope="class")
    def data_dir_state_before(self):
        """Capture state of ./data before tests."""
        data_path = Path("data")
        return {
            "exists": data_path.exists(),
            "hash": _hash_directory(data_path),
        }

    def test_data_directory_not_created(self, data_dir_state_before):
        """Test suite should not create ./data if it didn't exist."""
        if not data_dir_state_before["exists"] and Path("data").exists():
            pytest.fail(
                "./data directory was created during test run. "
                "All tests MUST use temporary directories for storage."
            )

    def test_data_directory_not_modified(self, data_dir_state_before):
        """Test suite should not modify ./data if it existed."""
        if data_dir_state_before["exists"]:
            if _hash_directory(Path("data")) != data_dir_state_before["hash"]:
                pytest.fail(
                    "./data directory was modified during test run. "
                    "Never upload PDFs to the configured storage root in tests."
                )


class TestDatabaseDirectorySafety:
    """Tests ensuring ./db is never modified by test suite."""

    @pytest.fixture(scope="class")
    def db_dir_state_before(self):
        """Capture state of ./db before tests."""
        db_path = Path("db")
        return {
            "exists": db_path.exists(),
            "hash": _hash_directory(db_path),
        }

    def test_db_directory_not_created(self, db_dir_state_before):
        """Test suite should not create ./db if it didn't exist."""
        if not db_dir_state_before["exists"] and Path("db").exists():
            pytest.fail(
                "./db directory was created during test run. "
                "All tests MUST use temporary directories for databases."
            )

    def test_db_directory_not_modified(self, db_dir_state_before):
        """Test suite should not modify ./db if it existed."""
        if db_dir_state_before["exists"]:
            if _hash_directory(Path("db")) != db_dir_state_before["hash"]:
                pytest.fail(
                    "./db directory was modified during test run. "
                    "All tests MUST use temporary directories for databases."
                )


class TestTestIsolation:
    """Meta-tests ensuring test modules use temp directories."""

    def test_phase_tests_never_use_default_database(self):
        """No phase test initializes the database at its default path."""
        violations = []

        for test_file in sorted(TESTS_DIR.glob("f*/*.py")):
            content = test_file.read_text(encoding="utf-8")

            if 'Path("db")' in content or 'Path("data")' in content:
                if "tmp_path" not in content:
                    violations.append(f"{test_file.name}: Uses ./db or ./data without tmp_path")

            # No arguments = default path
            if "init_db()" in content:
                violations.append(f"{test_file.name}: Calls init_db() without explicit temp path")

        if violations:
            pytest.fail(
                "Test files may not be properly isolated:\n"
                + "\n".join(f"  - {v}" for v in violations)
            )
