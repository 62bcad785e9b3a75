"""Unit tests for the alias backfill."""

from datetime import date, datetime, timezone

import pytest

from result_service.errors import NotFoundError, UpstreamError
from result_service.models import ExternalMatchStatus
from result_service.services.backfill_aliases import (
    BackfillAliasesService,
    is_included_league,
)
from result_service.services.fotmob_client import ExternalAPIMatch, ExternalAPITeam
from tests.factories import make_league

INCLUDED_LEAGUES = [
    {"name": "Premier League", "country_code": "ENG"},
    {"name": "Champions League", "country_code": "INT"},
]

DAY_1 = date(2026, 5, 1)
DAY_2 = date(2026, 5, 2)


def fixture_between(home: tuple[int, str], away: tuple[int, str], external_id: int = 1):
    return ExternalAPIMatch(
        id=external_id,
        home=ExternalAPITeam(id=home[0], name=home[1]),
        away=ExternalAPITeam(id=away[0], name=away[1]),
        time=datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc),
        status=ExternalMatchStatus.NOT_STARTED,
    )


def make_service(alias_repository, fotmob_client, number_of_workers=3):
    return BackfillAliasesService(
        alias_repository=alias_repository,
        fotmob_client=fotmob_client,
        included_leagues=INCLUDED_LEAGUES,
        number_of_workers=number_of_workers,
    )


class TestIsIncludedLeague:
    def test_name_and_country_must_both_match(self):
        assert is_included_league(make_league(), INCLUDED_LEAGUES)
        assert not is_included_league(make_league(country_code="SCO"), INCLUDED_LEAGUES)
        assert not is_included_league(make_league(name="Championship"), INCLUDED_LEAGUES)

    def test_parent_league_name_matches(self):
        league = make_league(
            name="Champions League Final Stage",
            country_code="INT",
            parent_league_name="Champions League",
        )

        assert is_included_league(league, INCLUDED_LEAGUES)


class TestBackfill:
    @pytest.mark.asyncio
    async def test_saves_unknown_teams_of_included_leagues(self, alias_repository, fotmob_client):
        fotmob_client.get_matches_by_date.return_value = [
            make_league(fixture_between((10260, "Man United"), (8455, "Chelsea"))),
            make_league(
                fixture_between((9925, "Celtic"), (8548, "Rangers")),
                name="Premiership",
                country_code="SCO",
            ),
        ]
        alias_repository.find.side_effect = NotFoundError("alias not found")

        stats = await make_service(alias_repository, fotmob_client).backfill([DAY_1])

        assert stats == {"dates": 1, "matches": 1, "saved": 2, "existed": 0, "errors": 0}
        saved = [c.args for c in alias_repository.save_with_team.await_args_list]
        assert saved == [("Man United", 10260), ("Chelsea", 8455)]

    @pytest.mark.asyncio
    async def test_existing_aliases_are_counted(self, alias_repository, fotmob_client):
        fotmob_client.get_matches_by_date.return_value = [
            make_league(fixture_between((10260, "Man United"), (8455, "Chelsea")))
        ]

        async def find(name):
            if name == "Chelsea":
                return object()
            raise NotFoundError(f"alias {name} not found")

        alias_repository.find.side_effect = find

        stats = await make_service(alias_repository, fotmob_client).backfill([DAY_1])

        assert stats["saved"] == 1
        assert stats["existed"] == 1
        alias_repository.save_with_team.assert_awaited_once_with("Man United", 10260)

    @pytest.mark.asyncio
    async def test_failing_date_is_skipped(self, alias_repository, fotmob_client):
        async def get_matches_by_date(day):
            if day == DAY_1:
                raise UpstreamError("provider down")
            return [make_league(fixture_between((10260, "Man United"), (8455, "Chelsea")))]

        fotmob_client.get_matches_by_date.side_effect = get_matches_by_date
        alias_repository.find.side_effect = NotFoundError("alias not found")

        stats = await make_service(alias_repository, fotmob_client).backfill([DAY_1, DAY_2])

        assert stats == {"dates": 2, "matches": 1, "saved": 2, "existed": 0, "errors": 1}

    @pytest.mark.asyncio
    async def test_save_failure_is_counted(self, alias_repository, fotmob_client):
        fotmob_client.get_matches_by_date.return_value = [
            make_league(fixture_between((10260, "Man United"), (8455, "Chelsea")))
        ]
        alias_repository.find.side_effect = NotFoundError("alias not found")
        alias_repository.save_with_team.side_effect = [RuntimeError("duplicate key"), None]

        stats = await make_service(alias_repository, fotmob_client).backfill([DAY_1])

        assert stats["saved"] == 1
        assert stats["errors"] == 1

    @pytest.mark.asyncio
    async def test_every_date_is_fetched_with_one_worker(self, alias_repository, fotmob_client):
        fotmob_client.get_matches_by_date.return_value = []
        days = [date(2026, 5, d) for d in range(1, 8)]

        stats = await make_service(alias_repository, fotmob_client, number_of_workers=1).backfill(
            days
        )

        assert stats["dates"] == 7
        fetched = sorted(c.args[0] for c in fotmob_client.get_matches_by_date.await_args_list)
        assert fetched == days
        alias_repository.save_with_team.assert_not_awaited()
