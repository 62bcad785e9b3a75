"""Unit tests for the FotMob client and its status mapping."""

from datetime import date, datetime, timezone

import httpx
import pytest

from result_service.models import ExternalMatchStatus
from result_service.services.fotmob_client import (
    FotmobAPIError,
    FotmobClient,
    find_match_by_id,
    find_match_by_teams,
    to_external_match_status,
)
from tests.factories import make_fixture, make_league

MATCHES_BODY = {
    "leagues": [
        {
            "id": 47,
            "name": "Premier League",
            "ccode": "ENG",
            "parentLeagueName": "Premier League",
            "matches": [
                {
                    "id": 4506000,
                    "home": {"id": 10260, "score": 2, "name": "Man United"},
                    "away": {"id": 8455, "score": 1, "name": "Chelsea"},
                    "statusId": 6,
                    "status": {"utcTime": "2026-05-01T18:00:00Z", "finished": True},
                }
            ],
        },
        {
            "id": 42,
            "name": "Champions League Final Stage",
            "ccode": "INT",
            "parentLeagueName": "Champions League",
            "matches": [],
        },
    ]
}


def make_client(settings, handler):
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=settings.fotmob_api_base_url,
    )
    return FotmobClient(settings=settings, http_client=http_client)


class TestStatusMapping:
    @pytest.mark.parametrize(
        "status_id,expected",
        [
            (1, ExternalMatchStatus.NOT_STARTED),
            (5, ExternalMatchStatus.CANCELLED),
            (17, ExternalMatchStatus.CANCELLED),
            (106, ExternalMatchStatus.CANCELLED),
            (2, ExternalMatchStatus.IN_PROGRESS),
            (3, ExternalMatchStatus.IN_PROGRESS),
            (4, ExternalMatchStatus.IN_PROGRESS),
            (8, ExternalMatchStatus.IN_PROGRESS),
            (9, ExternalMatchStatus.IN_PROGRESS),
            (10, ExternalMatchStatus.IN_PROGRESS),
            (12, ExternalMatchStatus.IN_PROGRESS),
            (14, ExternalMatchStatus.IN_PROGRESS),
            (20, ExternalMatchStatus.IN_PROGRESS),
            (231, ExternalMatchStatus.IN_PROGRESS),
            (6, ExternalMatchStatus.FINISHED),
            (11, ExternalMatchStatus.FINISHED),
            (13, ExternalMatchStatus.FINISHED),
            (0, ExternalMatchStatus.UNKNOWN),
            (99, ExternalMatchStatus.UNKNOWN),
        ],
    )
    def test_status_ids(self, status_id, expected):
        assert to_external_match_status(1, status_id) == expected


class TestGetMatchesByDate:
    @pytest.mark.asyncio
    async def test_requests_date_and_timezone(self, settings):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=MATCHES_BODY)

        async with make_client(settings, handler) as client:
            await client.get_matches_by_date(date(2026, 5, 1))

        assert len(requests) == 1
        assert requests[0].method == "GET"
        assert requests[0].url.path == "/api/data/matches"
        assert requests[0].url.params["date"] == "20260501"
        assert requests[0].url.params["timezone"] == "UTC"

    @pytest.mark.asyncio
    async def test_maps_leagues_and_fixtures(self, settings):
        async with make_client(settings, lambda r: httpx.Response(200, json=MATCHES_BODY)) as client:
            leagues = await client.get_matches_by_date(date(2026, 5, 1))

        assert [league.name for league in leagues] == [
            "Premier League",
            "Champions League Final Stage",
        ]
        assert leagues[1].parent_league_name == "Champions League"
        assert leagues[1].country_code == "INT"

        fixture = leagues[0].matches[0]
        assert fixture.id == 4506000
        assert fixture.home.id == 10260
        assert fixture.away.name == "Chelsea"
        assert (fixture.home_score, fixture.away_score) == (2, 1)
        assert fixture.status == ExternalMatchStatus.FINISHED
        assert fixture.time == datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_empty_body_has_no_leagues(self, settings):
        async with make_client(settings, lambda r: httpx.Response(200, json={})) as client:
            assert await client.get_matches_by_date(date(2026, 5, 1)) == []

    @pytest.mark.asyncio
    async def test_non_200_status_is_an_error(self, settings):
        async with make_client(settings, lambda r: httpx.Response(503, text="down")) as client:
            with pytest.raises(FotmobAPIError) as exc_info:
                await client.get_matches_by_date(date(2026, 5, 1))

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_transport_error_is_an_error(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(settings, handler) as client:
            with pytest.raises(FotmobAPIError, match="connection refused"):
                await client.get_matches_by_date(date(2026, 5, 1))

    @pytest.mark.asyncio
    async def test_unparsable_start_time_is_an_error(self, settings):
        body = {
            "leagues": [
                {
                    "name": "Premier League",
                    "ccode": "ENG",
                    "matches": [
                        {
                            "id": 1,
                            "home": {"id": 1, "name": "A"},
                            "away": {"id": 2, "name": "B"},
                            "statusId": 1,
                            "status": {"utcTime": "tomorrow evening"},
                        }
                    ],
                }
            ]
        }

        async with make_client(settings, lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(FotmobAPIError, match="starting time"):
                await client.get_matches_by_date(date(2026, 5, 1))


class TestFindMatch:
    def test_by_teams_respects_home_and_away(self):
        fixture = make_fixture(home_id=10, away_id=20)
        leagues = [make_league(), make_league(make_fixture(external_id=1), fixture)]

        assert find_match_by_teams(leagues, 10, 20) is fixture
        assert find_match_by_teams(leagues, 20, 10) is None

    def test_by_id(self):
        fixture = make_fixture(external_id=77)
        leagues = [make_league(make_fixture(external_id=1)), make_league(fixture)]

        assert find_match_by_id(leagues, 77) is fixture
        assert find_match_by_id(leagues, 78) is None
