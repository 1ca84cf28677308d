"""
Tests for Protocol Layers
Tests ordering, visibility and focus mode
"""

import pytest
from datetime import date

from tools.protocol_layers import resolve_protocol_layers
from tools.records import Protocol


@pytest.fixture
def protocols():
    """One active, two inactive and one trashed protocol"""
    return [
        Protocol(id="1", name="Old", start_date=date(2023, 6, 1), interval_days=7,
                 dose_ml=0.5, concentration_mg_per_ml=200.0),
        Protocol(id="2", name="Current", start_date=date(2024, 1, 1), interval_days=3.5,
                 dose_ml=0.25, concentration_mg_per_ml=200.0, is_active=True),
        Protocol(id="3", name="Newer", start_date=date(2023, 9, 1), interval_days=7,
                 dose_ml=1.0, concentration_mg_per_ml=100.0),
        Protocol(id="4", name="Trashed", start_date=date(2024, 2, 1), interval_days=7,
                 dose_ml=1.0, concentration_mg_per_ml=100.0, is_trashed=True),
    ]


class TestResolveProtocolLayers:
    """Tests for resolve_protocol_layers"""

    @pytest.mark.unit
    def test_clean_and_trashed_split(self, protocols):
        layers = resolve_protocol_layers(protocols)
        assert [p.id for p in layers.clean] == ["1", "2", "3"]
        assert [p.id for p in layers.trashed] == ["4"]
        assert "4" not in layers.lookup

    @pytest.mark.unit
    def test_active_first_then_newest_start(self, protocols):
        layers = resolve_protocol_layers(protocols)
        assert [p.id for p in layers.ordered] == ["2", "3", "1"]
        assert layers.active.id == "2"

    @pytest.mark.unit
    def test_hidden_ids(self, protocols):
        layers = resolve_protocol_layers(protocols, hidden_ids=["3"])
        assert layers.visible == {"1": True, "2": True, "3": False}
        assert [p.id for p in layers.visible_protocols()] == ["2", "1"]

    @pytest.mark.unit
    def test_focus_mode_shows_only_active(self, protocols):
        layers = resolve_protocol_layers(protocols, focus_active_only=True)
        assert layers.focus_active_enabled
        assert layers.visible == {"1": False, "2": True, "3": False}

    @pytest.mark.unit
    def test_focus_mode_without_active_falls_back(self, protocols):
        """Test focus mode is ignored when nothing is active"""
        inactive = [p for p in protocols if not p.is_active]
        layers = resolve_protocol_layers(inactive, hidden_ids=["1"], focus_active_only=True)
        assert not layers.focus_active_enabled
        assert layers.active is None
        assert layers.visible == {"1": False, "3": True}

    @pytest.mark.unit
    def test_dose_map(self, protocols):
        layers = resolve_protocol_layers(protocols)
        assert layers.dose_map["2"] == pytest.approx(50.0)
        assert layers.dose_map["3"] == pytest.approx(100.0)

    @pytest.mark.unit
    def test_empty(self):
        layers = resolve_protocol_layers([])
        assert layers.ordered == ()
        assert layers.active is None
