from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    Numeric,
    PrimaryKeyConstraint,
    String,
    Table,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql.sqltypes import JSON, Boolean, DateTime, Enum, Float, Text

Base = declarative_base()
metadata = Base.metadata
DateTimeTZ = DateTime(timezone=True)

players = Table(
    "players",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("name", String, nullable=False, index=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

leagues = Table(
    "leagues",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("name", String, nullable=False, index=True),
    Column("description", Text, nullable=True),
    Column("status", String, nullable=False, server_default="active"),
    Column("scoring_rules", JSON, nullable=True),
    Column("deleted", Boolean, nullable=False, server_default="f", index=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
)

league_members = Table(
    "league_members",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("league_id", String, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("role", String, nullable=False, server_default="player"),
    Column("is_active", Boolean, nullable=False, server_default="t"),
    Column("joined_at", DateTimeTZ, nullable=False, server_default=func.now()),
    Column("left_at", DateTimeTZ, nullable=True),
    UniqueConstraint("league_id", "player_id"),
)

tournaments = Table(
    "tournaments",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("name", String, nullable=False, index=True),
    Column(
        "status",
        Enum("setup", "in_progress", "completed", name="tournament_status"),
        nullable=False,
        server_default="setup",
        index=True,
    ),
    Column(
        "format",
        Enum("groups_only", "groups_with_playoffs", "playoffs_only", name="tournament_format"),
        nullable=False,
        server_default="groups_with_playoffs",
    ),
    Column("league_id", String, ForeignKey("leagues.id", ondelete="SET NULL"), index=True, nullable=True),
    Column("league_points_calculated", Boolean, nullable=False, server_default="f"),
    Column("playoffs", JSON, nullable=True),
    Column("deleted", Boolean, nullable=False, server_default="f", index=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
)

tournament_players = Table(
    "tournament_players",
    metadata,
    Column("tournament_id", String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False),
    Column("player_id", String, ForeignKey("players.id", ondelete="CASCADE"), index=True, nullable=False),
    PrimaryKeyConstraint("tournament_id", "player_id"),
)

groups = Table(
    "groups",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("tournament_id", String, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("name", String, nullable=False),
)

group_players = Table(
    "group_players",
    metadata,
    Column("group_id", String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
    Column("player_id", String, ForeignKey("players.id", ondelete="CASCADE"), index=True, nullable=False),
    PrimaryKeyConstraint("group_id", "player_id"),
)

group_standings = Table(
    "group_standings",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("group_id", String, ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("position", Integer, nullable=False, server_default="0"),
    Column("points", Integer, nullable=False, server_default="0"),
    Column("legs_won", Integer, nullable=False, server_default="0"),
    Column("legs_lost", Integer, nullable=False, server_default="0"),
    Column("average", Float, nullable=False, server_default="0"),
)

matches = Table(
    "matches",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("tournament_id", String, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("group_id", String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True),
    Column("is_playoff", Boolean, nullable=False, server_default="f"),
    Column("player1_id", String, ForeignKey("players.id"), index=True, nullable=True),
    Column("player2_id", String, ForeignKey("players.id"), index=True, nullable=True),
    Column("winner_id", String, ForeignKey("players.id"), nullable=True),
    Column(
        "status",
        Enum("pending", "in_progress", "completed", name="match_status"),
        nullable=False,
        server_default="pending",
    ),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

legs = Table(
    "legs",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("match_id", String, ForeignKey("matches.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player1_id", String, ForeignKey("players.id"), nullable=True),
    Column("player2_id", String, ForeignKey("players.id"), nullable=True),
    Column("winner_id", String, ForeignKey("players.id"), nullable=True),
)

dart_throws = Table(
    "dart_throws",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("leg_id", String, ForeignKey("legs.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id"), index=True, nullable=False),
)

match_player_stats = Table(
    "match_player_stats",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("match_id", String, ForeignKey("matches.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id"), index=True, nullable=False),
)

tournament_stats = Table(
    "tournament_stats",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("tournament_id", String, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id"), index=True, nullable=False),
)

league_tournament_results = Table(
    "league_tournament_results",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("league_id", String, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("tournament_id", String, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("placement", Integer, nullable=False),
    Column("points_awarded", Integer, nullable=False, server_default="0"),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    UniqueConstraint("league_id", "tournament_id", "player_id"),
)

league_leaderboard = Table(
    "league_leaderboard",
    metadata,
    Column("id", String, primary_key=True, index=True),
    Column("league_id", String, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("player_id", String, ForeignKey("players.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("total_points", Integer, nullable=False, server_default="0"),
    Column("tournaments_played", Integer, nullable=False, server_default="0"),
    Column("best_placement", Integer, nullable=True),
    Column("worst_placement", Integer, nullable=True),
    Column("avg_placement", Numeric, nullable=True),
    Column("last_tournament_at", DateTimeTZ, nullable=True),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
    UniqueConstraint("league_id", "player_id"),
)
