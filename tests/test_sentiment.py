import unittest
from unittest.mock import MagicMock, patch

import pandas as pd

from review_analysis.sentiment import get_analyzer, label_sentiment, restaurant_sentiment, score_reviews


def _fake_analyzer(compounds):
    analyzer = MagicMock()
    analyzer.polarity_scores.side_effect = lambda text: {
        'neg': 0.1, 'neu': 0.5, 'pos': 0.4, 'compound': compounds[text]
    }
    return analyzer


class TestSentiment(unittest.TestCase):

    def setUp(self):
        self.reviews = pd.DataFrame({
            "name": ["Golden Noodle", "Golden Noodle", "Golden Noodle", "Harbour Fish Bar", "Harbour Fish Bar"],
            "text": ["Amazing noodles", "Cold and bland", "It was ok", "Soggy chips", "   "],
            # The star rating must never feed the sentiment score
            "rating": [1, 5, 3, 5, 5],
        })
        self.analyzer = _fake_analyzer({
            "Amazing noodles": 0.8,
            "Cold and bland": -0.6,
            "It was ok": 0.0,
            "Soggy chips": -0.4,
        })

    def test_label_thresholds(self):
        self.assertEqual(label_sentiment(0.05), 'Positive')
        self.assertEqual(label_sentiment(-0.05), 'Negative')
        self.assertEqual(label_sentiment(0.049), 'Neutral')

    def test_score_reviews(self):
        scored = score_reviews(self.reviews, analyzer=self.analyzer)
        self.assertEqual(list(scored['sentiment_label']),
                         ['Positive', 'Negative', 'Neutral', 'Negative', 'No Review'])
        self.assertEqual(scored.loc[4, 'sentiment_compound'], 0.0)
        self.assertEqual(self.analyzer.polarity_scores.call_count, 4)
        self.assertNotIn('sentiment_compound', self.reviews.columns)

    def test_restaurant_sentiment(self):
        agg = restaurant_sentiment(score_reviews(self.reviews, analyzer=self.analyzer))
        self.assertEqual(list(agg['name']), ["Golden Noodle", "Harbour Fish Bar"])
        noodle = agg.iloc[0]
        self.assertAlmostEqual(noodle['avg_sentiment_compound'], (0.8 - 0.6 + 0.0) / 3)
        self.assertEqual(noodle['scored_reviews'], 3)
        self.assertEqual(noodle['positive_review_count'], 1)
        self.assertAlmostEqual(noodle['negative_ratio'], 1 / 3)
        fish = agg.iloc[1]
        self.assertAlmostEqual(fish['avg_sentiment_compound'], -0.4)
        self.assertEqual(fish['scored_reviews'], 1)

    def test_restaurant_sentiment_without_text(self):
        empty = score_reviews(pd.DataFrame({"name": ["A"], "text": [""]}), analyzer=self.analyzer)
        self.assertTrue(restaurant_sentiment(empty).empty)

    @patch('review_analysis.sentiment.nltk.download')
    @patch('review_analysis.sentiment.SentimentIntensityAnalyzer')
    def test_get_analyzer_downloads_lexicon(self, mock_sia, mock_download):
        instance = MagicMock()
        mock_sia.side_effect = [LookupError("vader_lexicon"), instance]
        self.assertIs(get_analyzer(), instance)
        mock_download.assert_called_once_with("vader_lexicon", quiet=True)


if __name__ == '__main__':
    unittest.main()
