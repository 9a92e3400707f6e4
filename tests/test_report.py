import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import pandas as pd

import run
from review_analysis.report import build_report, panel_groups

STOP_WORDS = frozenset({"the", "and", "was", "a", "is", "were", "with"})


def _fake_analyzer():
    analyzer = MagicMock()

    def polarity(text):
        compound = 0.6 if "great" in text.lower() else -0.3
        return {'neg': 0.0, 'neu': 0.5, 'pos': 0.5, 'compound': compound}

    analyzer.polarity_scores.side_effect = polarity
    return analyzer


class TestBuildReport(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.outdir = os.path.join(self.tmpdir, "out")
        self.restaurants_csv = os.path.join(self.tmpdir, "restaurants.csv")
        self.reviews_csv = os.path.join(self.tmpdir, "reviews.csv")

        pd.DataFrame({
            "restaurant_id": ["r1", "r2", "r3"],
            "name": ["Golden Noodle", "Bella Napoli", "Spice Route"],
        }).to_csv(self.restaurants_csv, index=False)
        pd.DataFrame({
            "review_id": [f"v{i}" for i in range(7)],
            "restaurant_id": ["r1", "r1", "r2", "r2", "r3", "r3", "r3"],
            "rating": [5, 4, 3, 5, 2, 4, None],
            "date": ["2024-01-02", "2024-02-11", "2024-02-15", "2024-03-01",
                     "2024-03-09", "2024-03-21", "2024-04-30"],
            "text": ["Great noodles and dumplings", "Noodles were cold",
                     "Pizza with great crust", "The pizza was soggy",
                     "Curry was salty", "Great curry and naan", "Naan was great"],
        }).to_csv(self.reviews_csv, index=False)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_writes_all_outputs(self):
        outputs = build_report(self.restaurants_csv, self.reviews_csv, self.outdir,
                               stop_words=STOP_WORDS, top_k=3, top_n=5, min_reviews=1,
                               analyzer=_fake_analyzer())
        expected = [
            "01_top_rated_restaurants.png", "02_rating_vs_review_count.png", "03_monthly_trend.png",
            "04_sentiment_by_restaurant.png", "05_distinctive_terms.png",
            "restaurant_summary.csv", "tf_idf_top_terms.csv", "report.md",
        ]
        for name in expected:
            self.assertIn(name, outputs)
            self.assertTrue(os.path.exists(outputs[name]), name)

        terms = pd.read_csv(outputs["tf_idf_top_terms.csv"], encoding="utf-8-sig")
        self.assertEqual(list(terms.columns), ["term", "group", "score"])
        self.assertLessEqual(terms.groupby("group").size().max(), 3)
        top_noodle = terms.loc[terms["group"] == "Golden Noodle"].iloc[0]
        self.assertEqual(top_noodle["term"], "noodles")

        summary = pd.read_csv(outputs["restaurant_summary.csv"], encoding="utf-8-sig")
        self.assertIn("avg_sentiment_compound", summary.columns)
        self.assertEqual(len(summary), 3)

        with open(outputs["report.md"], encoding="utf-8") as f:
            manifest = f.read()
        self.assertIn("Which words set each restaurant's reviews apart", manifest)
        self.assertIn("noodles", manifest)

    def test_skips_trend_without_dates(self):
        reviews = pd.read_csv(self.reviews_csv).drop(columns=["date"])
        reviews.to_csv(self.reviews_csv, index=False)
        with self.assertLogs('review_analysis.report', level='WARNING'):
            outputs = build_report(self.restaurants_csv, self.reviews_csv, self.outdir,
                                   stop_words=STOP_WORDS, analyzer=_fake_analyzer())
        self.assertNotIn("03_monthly_trend.png", outputs)
        self.assertIn("report.md", outputs)
        with open(outputs["report.md"], encoding="utf-8") as f:
            self.assertIn("Skipped", f.read())


class TestPanelGroups(unittest.TestCase):

    def test_shared_names_get_one_panel(self):
        top_df = pd.DataFrame({"term": ["pizza", "curry", "fish"], "group": ["A", "B", "C"],
                               "score": [1.0, 1.0, 1.0]})
        summary = pd.DataFrame({"name": ["A", "A", "Quiet", "B", "C"]})
        self.assertEqual(panel_groups(top_df, summary), ["A", "B", "C"])
        self.assertEqual(panel_groups(top_df, summary, max_panels=2), ["A", "B"])


class TestRunMain(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.stop_words_file = os.path.join(self.tmpdir, "stop.txt")
        with open(self.stop_words_file, "w", encoding="utf-8") as f:
            f.write("the\nand\n")

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_missing_input_exits_with_error(self):
        code = run.main([
            "--restaurants", os.path.join(self.tmpdir, "missing.csv"),
            "--reviews", os.path.join(self.tmpdir, "missing_reviews.csv"),
            "--outdir", os.path.join(self.tmpdir, "out"),
            "--stop-words", self.stop_words_file,
        ])
        self.assertEqual(code, 1)

    def test_environment_is_loaded_only_by_config(self):
        # config loads .env before reading its settings
        self.assertFalse(hasattr(run, "load_dotenv"))

    @patch('review_analysis.sentiment.get_analyzer')
    def test_sample_data_run(self, mock_get_analyzer):
        mock_get_analyzer.return_value = _fake_analyzer()
        sample_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "sample")
        outdir = os.path.join(self.tmpdir, "out")
        code = run.main([
            "--restaurants", os.path.join(sample_dir, "restaurants.csv"),
            "--reviews", os.path.join(sample_dir, "reviews.csv"),
            "--outdir", outdir,
            "--stop-words", self.stop_words_file,
            "--min-reviews", "2",
        ])
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(os.path.join(outdir, "report.md")))
        self.assertTrue(os.path.exists(os.path.join(outdir, "05_distinctive_terms.png")))


if __name__ == '__main__':
    unittest.main()
