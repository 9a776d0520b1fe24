"""
Tests for the globe API endpoints.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from py_atlas.api import main as api_main
from py_atlas.api.main import app, cached_country_features
from py_atlas.config import settings
from py_atlas.core.geo_features import GeoDataError, GeoFeature

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"name": "Testland"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-20, -10], [20, -10], [20, 10], [-20, 10], [-20, -10]]],
            },
        }
    ],
}


class TestGlobeAPI:
    """Test the texture and arc endpoints."""

    def setup_method(self):
        """Set up test client."""
        self.client = TestClient(app)
        cached_country_features.cache_clear()

    def teardown_method(self):
        cached_country_features.cache_clear()

    def test_root(self):
        response = self.client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_post_texture_returns_png(self):
        response = self.client.post("/texture", json={"geojson": COLLECTION, "seed": "abc", "width": 64, "height": 32})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["x-texture-fallback"] == "0"
        assert response.content.startswith(PNG_SIGNATURE)

    def test_post_texture_is_reproducible_with_seed(self):
        body = {"geojson": COLLECTION, "seed": "same", "width": 64, "height": 32}

        first = self.client.post("/texture", json=body)
        second = self.client.post("/texture", json=body)

        assert first.content == second.content

    def test_post_texture_rejects_malformed_collection(self):
        response = self.client.post("/texture", json={"geojson": {"type": "FeatureCollection"}})

        assert response.status_code == 422

    def test_post_texture_without_raster_backend_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "raster_backend", "none")

        response = self.client.post("/texture", json={"geojson": COLLECTION, "width": 32, "height": 16})

        assert response.status_code == 200
        assert response.headers["x-texture-fallback"] == "1"

    def test_get_texture_uses_cached_borders(self):
        features = [GeoFeature(feature_id=1, name="Testland",
                               polygons=((((-20, -10), (20, -10), (20, 10), (-20, 10)),),))]
        with patch.object(api_main, "fetch_feature_collection", return_value=features) as fetch:
            first = self.client.get("/texture.png", params={"width": 32, "height": 16})
            second = self.client.get("/texture.png", params={"width": 32, "height": 16})

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.content.startswith(PNG_SIGNATURE)
        fetch.assert_called_once()

    def test_get_texture_reports_unavailable_borders(self):
        with patch.object(api_main, "fetch_feature_collection", side_effect=GeoDataError("offline")):
            response = self.client.get("/texture.png", params={"width": 32, "height": 16})

        assert response.status_code == 502

    def test_texture_size_is_validated(self):
        response = self.client.get("/texture.png", params={"width": 1})

        assert response.status_code == 422

    def test_post_arcs(self):
        entities = [
            {"id": "a", "name": "A", "latitude": 48.85, "longitude": 2.35, "riskLevel": "Critical"},
            {"id": "b", "name": "B", "latitude": 51.5, "longitude": -0.12, "riskLevel": "High"},
            {"id": "r", "name": "R", "latitude": 52.5, "longitude": 13.4, "category": "Research Network"},
        ]

        response = self.client.post("/arcs", json={"entities": entities, "seed": "arcs"})

        assert response.status_code == 200
        data = response.json()
        assert data["entity_count"] == 2
        assert data["research_count"] == 1
        assert data["critical_count"] == 1
        assert [p["entity_id"] for p in data["points"]] == ["a", "b", "r"]
        for arc in data["arcs"]:
            assert set(arc) == {"startLat", "startLng", "endLat", "endLng"}

    def test_post_arcs_filters(self):
        entities = [
            {"id": "a", "latitude": 0, "longitude": 0, "riskLevel": "Critical"},
            {"id": "b", "latitude": 1, "longitude": 1, "riskLevel": "Low"},
        ]

        response = self.client.post("/arcs", json={"entities": entities, "risk_level": "Critical"})

        assert response.status_code == 200
        data = response.json()
        assert [p["entity_id"] for p in data["points"]] == ["a"]
        assert data["arcs"] == []

    @pytest.mark.parametrize("body", [{"entities": [{"latitude": 120, "longitude": 0}]},
                                      {"entities": [{"name": "no coordinates"}]}])
    def test_post_arcs_rejects_bad_entities(self, body):
        assert self.client.post("/arcs", json=body).status_code == 422
