import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.analysis.fingerprint import fingerprint, normalize_text, short_fingerprint  # noqa: E402


class FingerprintTests(unittest.TestCase):
    def test_same_pair_gives_same_fingerprint(self):
        first = fingerprint("Python developer resume", "Backend job posting")
        second = fingerprint("Python developer resume", "Backend job posting")
        self.assertEqual(first, second)
        self.assertEqual(len(first), 64)

    def test_known_digest_is_stable_across_processes(self):
        # sha256 of '["resume text","job text"]'
        self.assertEqual(
            fingerprint("resume text", "job text"),
            "6e355246280aab83c809ee2f36d54d9509ba8ef614299907c4fcfa93677d99f6",
        )

    def test_one_character_difference_changes_fingerprint(self):
        base = fingerprint("Senior Python engineer", "Needs Kubernetes")
        self.assertNotEqual(base, fingerprint("Senior Python engineeR", "Needs Kubernetes"))
        self.assertNotEqual(base, fingerprint("Senior Python engineer", "Needs Kubernetez"))

    def test_swapped_fields_do_not_collide(self):
        self.assertNotEqual(fingerprint("aaa", "bbb"), fingerprint("bbb", "aaa"))

    def test_separator_inside_text_does_not_collide(self):
        self.assertNotEqual(fingerprint("a|b", "c"), fingerprint("a", "b|c"))

    def test_normalization_ignores_line_endings_and_outer_whitespace(self):
        self.assertEqual(normalize_text("  line one\r\nline two\r  "), "line one\nline two")
        self.assertEqual(
            fingerprint("line one\r\nline two", "jd"),
            fingerprint("line one\nline two  ", "jd"),
        )

    def test_short_fingerprint_is_a_log_prefix(self):
        digest = fingerprint("resume text", "job text")
        self.assertEqual(short_fingerprint(digest), "6e355246280a")


if __name__ == "__main__":
    unittest.main()
