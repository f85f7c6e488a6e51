"""Tests for harvest/probe.py: probe ladder and length selection."""

import asyncio

import pytest

from conftest import FakeResponse, FakeSession, make_node, make_payload, null_payload


class TestProbeOffsets:
    def test_default_ladder(self):
        from harvest.probe import PROBE_OFFSETS

        hours = [o // 3600 for o in PROBE_OFFSETS]
        assert hours == [0, 1, 2, 3, 4, 5, 8, 12, 16, 20, 24, 28, 32, 36, 40, 44, 48]
        assert len(PROBE_OFFSETS) == 17

    def test_custom_interval(self):
        from harvest.probe import build_probe_offsets

        assert build_probe_offsets(interval=60, max_intervals=8) == [0, 60, 120, 180, 240, 300, 480]

    def test_short_max(self):
        from harvest.probe import build_probe_offsets

        assert build_probe_offsets(interval=10, max_intervals=3) == [0, 10, 20, 30]

    def test_interval_from_env(self, monkeypatch):
        from harvest.probe import build_probe_offsets

        monkeypatch.setenv("VODCHAT_PROBE_INTERVAL_SECONDS", "100")
        monkeypatch.setenv("VODCHAT_MAX_VIDEO_HOURS", "4")
        assert build_probe_offsets() == [0, 100, 200, 300, 400]


class TestSelectLength:
    def test_first_end_wins(self):
        from harvest.probe import Probe, select_length

        probes = [
            Probe(0, True, 100),
            Probe(3600, False, 3650),
            Probe(7200, False, 7200),
        ]
        assert select_length(probes) == 3650

    def test_doubles_when_no_end_found(self):
        from harvest.probe import Probe, select_length

        probes = [Probe(0, True, 100), Probe(3600, True, 3700)]
        assert select_length(probes) == 7400

    def test_no_probes(self):
        from harvest.probe import select_length

        assert select_length([]) == 0


class TestEstimateLength:
    def test_end_found_at_second_probe(self):
        from harvest.probe import estimate_length

        def handler(offset):
            if offset == 0:
                return make_payload([make_node("p0", 100)], has_next_page=True)
            if offset == 3600:
                return make_payload([make_node("p3600", 3650)], has_next_page=False)
            return make_payload([], has_next_page=False)

        session = FakeSession(handler)
        length = asyncio.run(estimate_length("123", "cid", session))

        assert length == 3650
        assert len(session.offsets) == 17

    def test_all_null_is_zero(self):
        from harvest.probe import estimate_length

        session = FakeSession(lambda off: null_payload())
        assert asyncio.run(estimate_length("123", "cid", session)) == 0

    def test_longer_than_ladder(self):
        from harvest.probe import estimate_length

        session = FakeSession(lambda off: make_payload([make_node(f"n{off}", off + 10)], True))
        length = asyncio.run(estimate_length("123", "cid", session))

        assert length == 2 * (48 * 3600 + 10)

    def test_empty_ladder(self):
        from harvest.probe import estimate_length

        session = FakeSession(lambda off: null_payload())
        assert asyncio.run(estimate_length("123", "cid", session, offsets=[])) == 0
        assert session.offsets == []

    def test_synthetic_vod(self, synthetic_vod):
        from harvest.probe import estimate_length

        session = FakeSession(synthetic_vod)
        # 7200 is the first probe past the last comment
        assert asyncio.run(estimate_length("123", "cid", session)) == 7200

    def test_probe_failure_propagates(self):
        from harvest.probe import estimate_length
        from scrapers.errors import TransportError

        def handler(offset):
            if offset == 0:
                return FakeResponse(status=500)
            return make_payload([], has_next_page=False)

        session = FakeSession(handler)
        with pytest.raises(TransportError):
            asyncio.run(estimate_length("123", "cid", session))

    def test_invalid_probe_response(self):
        from harvest.probe import estimate_length
        from scrapers.errors import SchemaError

        session = FakeSession(lambda off: {"invalid": "response"})
        with pytest.raises(SchemaError):
            asyncio.run(estimate_length("123", "cid", session))
