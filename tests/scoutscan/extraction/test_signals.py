"""Tests for scoutscan.extraction.signals — keyword signal tables."""
from scoutscan.extraction.signals import (
    analyze_snippet,
    detect_opportunity_type,
    detect_sentiment,
    merge_signals,
)


class TestAnalyzeSnippet:

    def test_returns_every_key(self):
        result = analyze_snippet('')
        assert set(result) == {
            'pain_points', 'interests', 'life_events', 'sentiment',
            'opportunity_type', 'business_keyword_hits',
        }
        assert result['pain_points'] == []
        assert result['sentiment'] == 'neutral'

    def test_taglish_income_message(self):
        result = analyze_snippet("Walang pera ako ngayon, gusto ko ng extra income")
        assert 'financial_stress' in result['pain_points']
        assert 'extra_income' in result['interests']
        assert result['sentiment'] == 'positive'
        assert result['opportunity_type'] == 'business'
        assert result['business_keyword_hits'] >= 1

    def test_life_events(self):
        result = analyze_snippet("We just got married and moved to Cebu")
        assert result['life_events'] == ['wedding', 'relocation']


class TestClassifiers:

    def test_sentiment(self):
        assert detect_sentiment('thank you, this is great') == 'positive'
        assert detect_sentiment('this is a scam, i hate it') == 'negative'
        assert detect_sentiment('ok noted') == 'neutral'

    def test_opportunity_type(self):
        assert detect_opportunity_type('how much is the starter kit') == 'product'
        assert detect_opportunity_type('looking for a business opportunity') == 'business'
        assert detect_opportunity_type('business opportunity and the product price') == 'both'
        assert detect_opportunity_type('hello') == 'both'


class TestMergeSignals:

    def test_enriched_lists_are_appended_unique(self):
        base = {'pain_points': ['debt_burden'], 'interests': [], 'life_events': [],
                'sentiment': 'neutral', 'opportunity_type': 'both'}
        enriched = {'pain_points': ['debt_burden', 'medical_bills'], 'sentiment': 'negative',
                    'opportunity_type': 'bogus'}
        merged = merge_signals(base, enriched)
        assert merged['pain_points'] == ['debt_burden', 'medical_bills']
        assert merged['sentiment'] == 'negative'
        assert merged['opportunity_type'] == 'both'

    def test_base_is_not_mutated(self):
        base = {'pain_points': ['debt_burden']}
        merge_signals(base, {'pain_points': ['x']})
        assert base == {'pain_points': ['debt_burden']}
