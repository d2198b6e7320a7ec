"""Tests for scoutscan.scoring.overlays — persona, CTA fit, emotional intent."""
import pytest

from scoutscan.scoring.overlays import (
    CTAFitOverlay,
    EmotionalIntentOverlay,
    Overlay,
    PersonaOverlay,
)


# ── Persona ──────────────────────────────────────────────────────────────────

class TestPersonaOverlay:

    def test_no_industry_gives_generic_persona(self, rules, make_base):
        result = PersonaOverlay(rules).evaluate(make_base(industry=None), ['gusto ko ng extra income'])
        assert result.data['persona'] == 'generic'
        assert result.score == 50

    def test_best_matching_persona(self, rules, make_base):
        result = PersonaOverlay(rules).evaluate(make_base(), ['Gusto ko ng extra income, sideline lang'])
        assert result.data['persona'] == 'aspiring_side_hustler'
        assert result.score == 55
        assert 'extra income' in result.data['matched']

    def test_weak_match_falls_back_to_generic(self, rules, make_base):
        result = PersonaOverlay(rules).evaluate(make_base(), ['hello po'])
        assert result.data['persona'] == 'generic'
        assert result.score == 50

    def test_two_strong_personas_average(self, rules, make_base):
        messages = ['gusto ko ng extra income part time, build team and recruit for my network']
        result = PersonaOverlay(rules).evaluate(make_base(), messages)
        assert result.data['persona'] == 'network_builder'
        assert result.data['runner_up'] == 'aspiring_side_hustler'
        assert result.score == 62.5

    def test_only_the_industry_personas_are_considered(self, rules, make_base):
        result = PersonaOverlay(rules).evaluate(make_base(industry='insurance'), ['gusto ko ng extra income'])
        mlm_ids = {p.id for p in rules.personas['mlm']}
        assert result.data['persona'] not in mlm_ids


# ── CTA fit ──────────────────────────────────────────────────────────────────

class TestCTAFitOverlay:

    @pytest.mark.parametrize('temperature,expected', [
        ('cold', 'educational_content'),
        ('warm', 'testimonial_share'),
        ('hot', 'business_call'),
    ])
    def test_suggestion_by_temperature(self, rules, make_base, temperature, expected):
        base = make_base(lead_temperature=temperature, rating=temperature)
        result = CTAFitOverlay(rules).evaluate(base, [], last_cta=None)
        assert result.data['suggested_cta'] == expected
        assert result.score == 50

    @pytest.mark.parametrize('temperature,last_cta,fit,misalignment', [
        ('hot', 'business_call', 90, None),
        ('warm', 'testimonial_share', 80, None),
        ('cold', 'educational_content', 70, None),
        ('cold', 'business_call', 30, 'aggressive'),
        ('cold', 'starter_kit_offer', 30, 'aggressive'),
        ('hot', 'educational_content', 40, 'weak'),
        ('warm', 'educational_content', 50, 'mismatch'),
        ('warm', 'not_a_cta', 45, None),
    ])
    def test_last_cta_fit(self, rules, make_base, temperature, last_cta, fit, misalignment):
        base = make_base(lead_temperature=temperature, rating=temperature)
        result = CTAFitOverlay(rules).evaluate(base, [], last_cta=last_cta)
        assert result.score == fit
        assert result.data['misalignment'] == misalignment
        assert result.data['misaligned'] is (misalignment is not None)

    def test_no_industry_uses_generic_catalogue(self, rules, make_base):
        result = CTAFitOverlay(rules).evaluate(make_base(industry=None), [], last_cta='starter_kit_offer')
        assert result.data['catalogue'] == 'generic'
        assert result.data['suggested_cta'] == 'nurture_check_in'
        assert result.score == 45


# ── Emotional intent ─────────────────────────────────────────────────────────

class TestEmotionalIntentOverlay:

    def test_skeptical_message(self, rules, make_base):
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), ['Scam ba to? Legit ba?'])
        assert result.data['emotional_state'] == 'skeptical'
        assert result.data['tone_adjustment'] == 'more_reassuring'
        assert result.data['trust_score'] == 55
        assert 'scam_trauma' in result.data['risk_flags']
        assert result.score == 40

    def test_repeated_scam_mentions(self, rules, make_base):
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), ['is this a scam?', 'friend said scam yan'])
        assert result.data['trust_score'] == 35

    def test_excited_message(self, rules, make_base):
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), ['Wow ganda, gusto ko to!'])
        assert result.data['emotional_state'] == 'excited'
        assert result.data['tone_adjustment'] == 'more_confident'
        assert result.data['trust_score'] == 65
        assert result.score == 75

    def test_neutral_when_below_threshold(self, rules, make_base):
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), ['ok'])
        assert result.data['emotional_state'] == 'neutral'
        assert result.data['tone_adjustment'] == 'none'
        assert result.data['risk_flags'] == []
        assert result.score == 65

    def test_only_last_five_messages_count(self, rules, make_base):
        messages = ['scam scam fraud'] + ['ok'] * 5
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), messages)
        assert result.data['trust_score'] == 65
        assert result.data['risk_flags'] == []

    def test_positive_signals_raise_trust(self, rules, make_base):
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), ['thanks, salamat, very helpful'])
        assert result.data['trust_score'] == 80

    def test_trust_is_clamped(self, rules, make_base):
        text = 'scam fraud fake walang kwenta waste naloko nabiktima'
        result = EmotionalIntentOverlay(rules).evaluate(make_base(), [text, text])
        assert result.data['trust_score'] == 0
        assert result.score == 0


# ── Contract ─────────────────────────────────────────────────────────────────

class TestOverlayContract:

    def test_overlay_is_abstract(self, rules):
        with pytest.raises(TypeError):
            Overlay(rules)

    def test_subclass_without_evaluate_is_rejected(self, rules):
        class Incomplete(Overlay):
            name = 'incomplete'

        with pytest.raises(TypeError):
            Incomplete(rules)
