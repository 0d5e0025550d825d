from typing import NewType

PlayerId = NewType("PlayerId", str)
LeagueId = NewType("LeagueId", str)
TournamentId = NewType("TournamentId", str)
GroupId = NewType("GroupId", str)
MatchId = NewType("MatchId", str)
LeaderboardEntryId = NewType("LeaderboardEntryId", str)
LeagueMemberId = NewType("LeagueMemberId", str)
