"""
Unit tests for institutional setup detection.
"""

import pytest

from opportunity_engine.shared.models.institutional import (
    ConfluenceLevel,
    InstitutionalSetup,
    OpenInterestData,
    RSIData,
    RsiTrend,
    SetupStatus,
)
from opportunity_engine.strategy.institutional.setup import (
    detect_institutional_setup,
    generate_setup_narrative,
    get_confluence_status_description,
    get_criterion_description,
    get_setup_progress_description,
    has_choch,
    has_institutional_target,
    has_liquidity,
    has_mitigation,
)
from tests.fixtures.market_data import make_asset


def _full_setup_asset(**overrides):
    fields = dict(
        volume=50e6,
        percentage_change=6.0,
        volume_market_cap_ratio=0.5,
        momentum=0.8,
        volatility=0.8,
        confluence_score=0.8,
        has_confluence=True,
        rsi=RSIData(value=60.0, trend=RsiTrend.RISING),
        open_interest=OpenInterestData(current=110.0, previous=100.0, change_percent=10.0, is_increasing=True),
    )
    fields.update(overrides)
    return make_asset(**fields)


class TestCriteria:
    """Tests for individual criterion predicates."""

    def test_liquidity(self):
        assert has_liquidity(make_asset(volume_market_cap_ratio=0.5, volume=20e6))
        assert not has_liquidity(make_asset(volume_market_cap_ratio=0.05, volume=20e6))
        assert not has_liquidity(make_asset(volume_market_cap_ratio=0.5, volume=5e6))

    def test_rsi_dependent_criteria_need_readings(self):
        asset = _full_setup_asset(rsi=None, open_interest=None)
        assert not has_choch(asset)
        assert not has_mitigation(asset)
        assert not has_institutional_target(asset)

    def test_mitigation_band_is_exclusive(self):
        assert not has_mitigation(_full_setup_asset(rsi=RSIData(value=70.0, trend=RsiTrend.RISING)))
        assert has_mitigation(_full_setup_asset(rsi=RSIData(value=69.9, trend=RsiTrend.RISING)))


class TestDetectInstitutionalSetup:
    """Tests for the eight-criterion aggregate."""

    def test_no_criteria(self):
        setup = detect_institutional_setup(make_asset())

        assert setup.setup_progress == 0
        assert setup.setup_status == SetupStatus.NONE
        assert setup.confluence_level == ConfluenceLevel.LOW
        assert setup.setup_narrative.startswith('No institutional criteria detected')

    def test_complete_setup(self):
        setup = detect_institutional_setup(_full_setup_asset())

        assert all(setup.criteria().values())
        assert setup.setup_progress == 8
        assert setup.setup_status == SetupStatus.COMPLETE
        assert setup.confluence_level == ConfluenceLevel.HIGH
        assert setup.setup_narrative.startswith('Institutional Setup: Liquidity ✅ → Manipulation ✅')
        assert 'Complete setup validated' in setup.setup_narrative

    def test_partial_setup(self):
        setup = detect_institutional_setup(make_asset(volume_market_cap_ratio=0.5, volume=20e6))

        assert setup.has_liquidity
        assert setup.setup_progress >= 1
        assert setup.setup_status == SetupStatus.PARTIAL
        assert 'early analysis' in setup.setup_narrative

    def test_medium_confluence_from_score_alone(self):
        setup = detect_institutional_setup(make_asset(confluence_score=0.55))
        assert setup.confluence_level == ConfluenceLevel.MEDIUM

    def test_progress_matches_flags(self):
        setup = detect_institutional_setup(_full_setup_asset(rsi=None, open_interest=None))
        assert setup.setup_progress == sum(setup.criteria().values())
        assert setup.setup_progress == 5


def _setup_with_progress(progress):
    names = (
        'has_liquidity', 'has_manipulation', 'has_choch', 'has_ob',
        'has_fvg', 'has_mitigation', 'has_displacement', 'has_institutional_target',
    )
    flags = {name: i < progress for i, name in enumerate(names)}
    status = SetupStatus.COMPLETE if progress == 8 else SetupStatus.PARTIAL
    return InstitutionalSetup(
        setup_progress=progress,
        setup_status=status,
        confluence_level=ConfluenceLevel.MEDIUM,
        **flags,
    )


class TestSetupNarrative:
    """Tests for the progress tiers of the setup narrative."""

    @pytest.mark.parametrize("progress", [6, 7])
    def test_nearly_complete(self, progress):
        narrative = generate_setup_narrative(_setup_with_progress(progress))
        assert 'Setup nearly complete' in narrative

    @pytest.mark.parametrize("progress", [4, 5])
    def test_partial_configuration(self, progress):
        narrative = generate_setup_narrative(_setup_with_progress(progress))
        assert 'Partial configuration detected' in narrative

    def test_three_criteria_is_early_analysis(self):
        narrative = generate_setup_narrative(_setup_with_progress(3))
        assert 'early analysis' in narrative
        assert 'Partial configuration' not in narrative

    def test_lists_met_criteria_in_order(self):
        narrative = generate_setup_narrative(_setup_with_progress(4))
        assert narrative.startswith('Institutional Setup: Liquidity ✅ → Manipulation ✅ → CHOCH ✅ → OB ✅ | ')


class TestSetupDescriptions:
    """Tests for display helpers."""

    def test_progress_description(self):
        setup = detect_institutional_setup(make_asset(volume_market_cap_ratio=0.5, volume=20e6))
        assert get_setup_progress_description(setup).startswith('Liq')
        assert get_setup_progress_description(detect_institutional_setup(make_asset())) == 'No criteria detected'

    def test_confluence_status(self):
        setup = detect_institutional_setup(_full_setup_asset())
        assert get_confluence_status_description(setup).startswith('High Confluence')

    @pytest.mark.parametrize("key", ['liquidity', 'ob', 'institutionalTarget'])
    def test_criterion_description(self, key):
        assert get_criterion_description(key) != ''

    def test_unknown_criterion(self):
        assert get_criterion_description('unknown') == ''
