import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.schemas.gap_analysis import AnalysisRequest, sanitize_markup  # noqa: E402


class SanitizeMarkupTests(unittest.TestCase):
    def test_strips_html_tags_and_script_blocks(self):
        text = '<div class="cv"><b>Senior</b> engineer<br/><script>alert(1)</script></div>'
        self.assertEqual(" ".join(sanitize_markup(text).split()), "Senior engineer")

    def test_comparisons_survive(self):
        text = "Need a<b comparisons and x>y in C++ templates"
        self.assertEqual(sanitize_markup(text), text)

    def test_generic_types_survive(self):
        self.assertEqual(sanitize_markup("std::vector<int> and List<String>"), "std::vector<int> and List<String>")

    def test_encoded_tags_are_removed_after_unescape(self):
        self.assertEqual(sanitize_markup("&lt;b&gt;Go&lt;/b&gt; developer").split(), ["Go", "developer"])

    def test_comments_are_removed(self):
        self.assertEqual(sanitize_markup("Python<!-- hidden -->dev"), "Python dev")

    def test_request_model_applies_sanitizer(self):
        request = AnalysisRequest.model_validate(
            {"resume": "<p>Python developer, 5 years</p>", "jobDescription": "Backend x>y role"}
        )
        self.assertEqual(request.resume, "Python developer, 5 years")
        self.assertEqual(request.job_description, "Backend x>y role")


if __name__ == "__main__":
    unittest.main()
