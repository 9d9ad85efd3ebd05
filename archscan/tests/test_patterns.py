"""Tests for file discovery utilities."""

from archscan.patterns import (
    find_files,
    first_existing_dir,
    match_any_pattern,
    match_filename_pattern,
)


class TestFilenamePatternMatching:
    """Tests for filename pattern matching."""

    def test_match_suffix_pattern(self):
        assert match_filename_pattern("src/Controller/HomeController.php", "*Controller.php")
        assert not match_filename_pattern("src/Controller/Home.php", "*Controller.php")

    def test_match_is_case_sensitive(self):
        assert not match_filename_pattern("homecontroller.php", "*Controller.php")

    def test_match_any(self):
        patterns = ["*Service.php", "*Manager.php"]
        assert match_any_pattern("CartManager.php", patterns)
        assert not match_any_pattern("Cart.php", patterns)


class TestFindFiles:
    """Tests for recursive enumeration."""

    def test_sorted_recursive_results(self, tmp_path):
        for relative in ["b/Zeta.php", "a/Alpha.php", "Beta.php", "notes.txt"]:
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("<?php")

        found = find_files(tmp_path, ["*.php"])

        assert found == sorted([
            tmp_path / "Beta.php",
            tmp_path / "a" / "Alpha.php",
            tmp_path / "b" / "Zeta.php",
        ])

    def test_skips_hidden_and_configured_dirs(self, tmp_path):
        for relative in [".cache/A.php", "vendor/B.php", ".Hidden.php", "C.php"]:
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("<?php")

        found = find_files(tmp_path, ["*.php"], skip_dirs=["vendor"])

        assert found == [tmp_path / "C.php"]

    def test_missing_root(self, tmp_path):
        assert find_files(tmp_path / "missing", ["*.php"]) == []


class TestFirstExistingDir:
    """Tests for directory fallbacks."""

    def test_first_match_wins(self, tmp_path):
        (tmp_path / "Services").mkdir()
        assert first_existing_dir(tmp_path, ["Service", "Services"]) == tmp_path / "Services"

    def test_none_when_absent(self, tmp_path):
        assert first_existing_dir(tmp_path, ["Service"]) is None
