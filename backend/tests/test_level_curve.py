"""Tests for the level curve."""

import pytest

from app.services.level_curve import LevelCurve


class TestRequiredExp:
    """Closed-form cumulative EXP requirements."""

    def test_level_one_needs_nothing(self):
        assert LevelCurve.required_exp(1) == 0
        assert LevelCurve.required_exp(0) == 0

    @pytest.mark.parametrize(
        "level,expected",
        [(2, 220), (5, 1360), (10, 4860), (50, 104860), (100, 409860)],
    )
    def test_known_values(self, level, expected):
        assert LevelCurve.required_exp(level) == expected

    def test_strictly_increasing(self):
        previous = LevelCurve.required_exp(1)
        for level in range(2, LevelCurve.MAX_LEVEL + 1):
            current = LevelCurve.required_exp(level)
            assert current > previous
            previous = current

    def test_exp_to_next_level(self):
        assert LevelCurve.exp_to_next_level(1) == 220
        # 80L + 140 above level 1
        assert LevelCurve.exp_to_next_level(10) == 940


class TestLevelFromExp:
    """Inverse mapping by binary search."""

    def test_zero_and_negative(self):
        assert LevelCurve.level_from_exp(0) == 1
        assert LevelCurve.level_from_exp(-500) == 1

    def test_round_trip_every_level(self):
        for level in range(1, LevelCurve.MAX_LEVEL + 1):
            assert LevelCurve.level_from_exp(LevelCurve.required_exp(level)) == level

    def test_one_below_threshold_is_previous_level(self):
        for level in range(2, LevelCurve.MAX_LEVEL + 1):
            exp = LevelCurve.required_exp(level) - 1
            assert LevelCurve.level_from_exp(exp) == level - 1

    def test_capped_at_max_level(self):
        assert LevelCurve.level_from_exp(10**12) == LevelCurve.MAX_LEVEL


class TestLevelProgress:
    """Fraction of the current level completed."""

    def test_start_of_level(self):
        assert LevelCurve.level_progress(220, 2) == 0.0

    def test_halfway(self):
        # Level 1 -> 2 spans 220 EXP
        assert LevelCurve.level_progress(110, 1) == pytest.approx(0.5)

    def test_clamped(self):
        assert LevelCurve.level_progress(10**6, 1) == 1.0
        assert LevelCurve.level_progress(0, 5) == 0.0


class TestLevelCurveAPI:
    """Public level table preview."""

    def test_default_preview(self, client):
        response = client.get("/api/v1/levels/curve")

        assert response.status_code == 200
        data = response.json["data"]
        assert data["max_level"] == 1000
        assert len(data["levels"]) == 50
        assert data["levels"][0] == {"level": 1, "required_exp": 0, "exp_to_next_level": 220}
        assert data["levels"][1]["required_exp"] == 220

    def test_window_truncated_at_max_level(self, client):
        data = client.get("/api/v1/levels/curve?start=995&count=20").json["data"]

        assert [row["level"] for row in data["levels"]] == list(range(995, 1001))

    @pytest.mark.parametrize("query", ["start=0", "start=1001", "count=0", "count=201"])
    def test_out_of_range(self, client, query):
        response = client.get(f"/api/v1/levels/curve?{query}")

        assert response.status_code == 400
        assert response.json["error"]["code"] == "VALIDATION_ERROR"
