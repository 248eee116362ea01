"""End-to-end tests for the search statistics endpoints."""

from datetime import date
from unittest.mock import patch

from text_search.exceptions import InvalidInputError
from text_search.models.search_models import StatsPage

AUTH = {"auth": "s3cret-admin"}


class TestSearchStatsEndpoint:
    """Test GET /search-stats."""

    @patch("text_search.api.stats.get_search_stats")
    def test_returns_page(self, mock_get_stats, test_client):
        mock_get_stats.return_value = StatsPage(
            draw=3,
            recordsTotal=1,
            recordsFiltered=1,
            data=[{"id": 1, "text": "algebra", "ip": "1.1.1.1", "num_results": 2}],
        )

        response = test_client.get(
            "/search-stats",
            params={
                **AUTH,
                "draw": 3,
                "page": 2,
                "page_size": 25,
                "start_date": "2024-03-01",
                "end_date": "2024-03-31",
                "text": "alg",
                "order_dir": "asc",
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "draw": 3,
            "recordsTotal": 1,
            "recordsFiltered": 1,
            "data": [{"id": 1, "text": "algebra", "ip": "1.1.1.1", "num_results": 2}],
        }
        query = mock_get_stats.call_args[0][0]
        assert query.page == 2
        assert query.page_size == 25
        assert query.start_date == date(2024, 3, 1)
        assert query.end_date == date(2024, 3, 31)
        assert query.text == "alg"
        assert query.order_dir == "asc"
        assert query.tz == "Europe/Madrid"

    def test_invalid_paging_rejected(self, test_client):
        response = test_client.get("/search-stats", params={**AUTH, "page": 0})

        assert response.status_code == 422

    @patch("text_search.api.stats.get_search_stats")
    def test_stats_not_configured(self, mock_get_stats, test_client):
        mock_get_stats.side_effect = InvalidInputError("Search statistics are not configured!")

        response = test_client.get("/search-stats", params=AUTH)

        assert response.status_code == 500
        assert response.text == "ERROR: Search statistics are not configured!"


class TestMostWantedEndpoint:
    """Test GET /stats/most-wanted."""

    @patch("text_search.api.stats.get_most_wanted")
    def test_returns_page(self, mock_most_wanted, test_client):
        mock_most_wanted.return_value = StatsPage(
            recordsTotal=12,
            recordsFiltered=12,
            data=[{"text": "algebra", "num_searches": 9, "last_search_at": "2024-01-02"}],
        )

        response = test_client.get(
            "/stats/most-wanted", params={**AUTH, "min_count": 2, "tz": "UTC"}
        )

        assert response.status_code == 200
        assert response.json()["recordsTotal"] == 12
        query = mock_most_wanted.call_args[0][0]
        assert query.min_count == 2
        assert query.tz == "UTC"
