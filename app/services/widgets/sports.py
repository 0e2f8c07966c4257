"""Sports widget provider.

Data sources:
- ESPN scoreboard API (unofficial, free, no key)

Caching: 5 min live, 1 min demo.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from app.core.errors import InvalidInputError, UpstreamError
from app.models.widgets import Game, SportsData
from app.services.widgets.base import WidgetProvider, pick

_TEAM_STRIP = re.compile(r"[^a-z0-9 .'-]")
MAX_TEAMS = 10
MAX_TEAM_LENGTH = 40


class SportsProvider(WidgetProvider):
    """Today's scoreboard for one league, optionally filtered to some teams."""

    widget_type = "sports"
    provider_name = "ESPN"

    ESPN_BASE = "https://site.api.espn.com/apis/site/v2/sports"

    LEAGUES = {
        "nfl": {"sport": "football", "league": "nfl", "name": "NFL"},
        "nba": {"sport": "basketball", "league": "nba", "name": "NBA"},
        "mlb": {"sport": "baseball", "league": "mlb", "name": "MLB"},
        "nhl": {"sport": "hockey", "league": "nhl", "name": "NHL"},
        "soccer": {"sport": "soccer", "league": "eng.1", "name": "Premier League"},
    }

    DEMO_TEAMS = {
        "nfl": ["Patriots", "Cowboys", "Packers", "Chiefs", "49ers"],
        "nba": ["Lakers", "Warriors", "Celtics", "Bulls", "Heat"],
        "mlb": ["Yankees", "Dodgers", "Red Sox", "Cubs", "Giants"],
        "nhl": ["Bruins", "Rangers", "Blackhawks", "Kings", "Penguins"],
        "soccer": ["Arsenal", "Chelsea", "Liverpool", "Man City", "Man United"],
    }

    def sanitize(self, params: dict[str, Any]) -> dict[str, str]:
        league = pick(params.get("league"), tuple(self.LEAGUES), "league", "nfl")

        teams = set()
        for raw in (params.get("teams") or "").split(","):
            if len(raw) > MAX_TEAM_LENGTH:
                raise InvalidInputError("Invalid teams parameter")
            name = " ".join(_TEAM_STRIP.sub("", raw.lower()).split())
            if name:
                teams.add(name)
        if len(teams) > MAX_TEAMS:
            raise InvalidInputError(f"At most {MAX_TEAMS} teams can be followed")

        return {"league": league, "teams": ",".join(sorted(teams))}

    @staticmethod
    def _follows(game: Game, teams: str) -> bool:
        if not teams:
            return True
        names = (game.home_team.lower(), game.away_team.lower())
        return any(team in name for team in teams.split(",") for name in names)

    def _parse_game(self, event: dict) -> Game:
        """Parse ESPN event data into Game."""
        competition = (event.get("competitions") or [{}])[0]
        competitors = competition.get("competitors", [])

        home = next((c for c in competitors if c.get("homeAway") == "home"), {})
        away = next((c for c in competitors if c.get("homeAway") == "away"), {})

        status_type = (event.get("status") or {}).get("type", {})
        state = status_type.get("state", "pre")
        if state == "post":
            status = "Final"
        elif state == "in":
            status = "Live"
        else:
            status = "Scheduled"

        def score(competitor: dict) -> int | None:
            if status == "Scheduled" or competitor.get("score") in (None, ""):
                return None
            return int(competitor["score"])

        def team_name(competitor: dict) -> str:
            team = competitor.get("team", {})
            return team.get("displayName") or team.get("name") or "TBD"

        return Game(
            id=str(event.get("id", "")),
            home_team=team_name(home),
            away_team=team_name(away),
            home_score=score(home),
            away_score=score(away),
            status=status,
            detail=status_type.get("shortDetail"),
            date=event.get("date", ""),
        )

    async def fetch_live(self, query: dict[str, str]) -> SportsData:
        info = self.LEAGUES[query["league"]]
        data = await self._get_json(f"{self.ESPN_BASE}/{info['sport']}/{info['league']}/scoreboard")

        try:
            games = [self._parse_game(event) for event in data.get("events", [])]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Unexpected ESPN scoreboard payload: {e!r}") from e

        return SportsData(
            league=info["name"],
            games=[g for g in games if self._follows(g, query["teams"])],
            last_updated=datetime.now(timezone.utc).isoformat(),
        )

    def generate_demo(self, query: dict[str, str]) -> SportsData:
        rng = self._rng
        league = query["league"]
        teams = self.DEMO_TEAMS[league]
        now = datetime.now(timezone.utc)

        games = []
        for i, status in enumerate(("Live", "Final", "Scheduled")):
            home, away = rng.sample(teams, 2)
            live_detail = f"{rng.randint(1, 4)}Q {rng.randint(0, 14)}:{rng.randint(0, 59):02d}"
            games.append(Game(
                id=str(i + 1),
                home_team=home,
                away_team=away,
                home_score=None if status == "Scheduled" else rng.randint(10, 59),
                away_score=None if status == "Scheduled" else rng.randint(10, 59),
                status=status,
                detail=live_detail if status == "Live" else None,
                date=(now + timedelta(days=i - 1)).isoformat(),
            ))

        return SportsData(
            league=self.LEAGUES[league]["name"],
            games=[g for g in games if self._follows(g, query["teams"])],
            last_updated=now.isoformat(),
            demo=True,
        )
