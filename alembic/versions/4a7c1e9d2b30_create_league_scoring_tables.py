"""create league scoring tables

Revision ID: 4a7c1e9d2b30
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM

from alembic import op

# revision identifiers, used by Alembic.
revision: str | None = "4a7c1e9d2b30"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

tournament_status_enum = ENUM(
    "setup", "in_progress", "completed", name="tournament_status", create_type=False
)
tournament_format_enum = ENUM(
    "groups_only",
    "groups_with_playoffs",
    "playoffs_only",
    name="tournament_format",
    create_type=False,
)
match_status_enum = ENUM(
    "pending", "in_progress", "completed", name="match_status", create_type=False
)


def _now() -> sa.TextClause:
    return sa.text("now()")


def _id_index(table: str) -> None:
    op.create_index(op.f(f"ix_{table}_id"), table, ["id"], unique=False)


def upgrade() -> None:
    bind = op.get_bind()
    tournament_status_enum.create(bind, checkfirst=True)
    tournament_format_enum.create(bind, checkfirst=True)
    match_status_enum.create(bind, checkfirst=True)

    op.create_table(
        "players",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("players")
    op.create_index(op.f("ix_players_name"), "players", ["name"], unique=False)

    op.create_table(
        "leagues",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), server_default="active", nullable=False),
        sa.Column("scoring_rules", sa.JSON(), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default="f", nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("leagues")
    op.create_index(op.f("ix_leagues_name"), "leagues", ["name"], unique=False)
    op.create_index(op.f("ix_leagues_deleted"), "leagues", ["deleted"], unique=False)

    op.create_table(
        "league_members",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("league_id", sa.String(), nullable=False),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), server_default="player", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="t", nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["league_id"], ["leagues.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("league_id", "player_id"),
    )
    _id_index("league_members")
    op.create_index(op.f("ix_league_members_league_id"), "league_members", ["league_id"], unique=False)
    op.create_index(op.f("ix_league_members_player_id"), "league_members", ["player_id"], unique=False)

    op.create_table(
        "tournaments",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", tournament_status_enum, server_default="setup", nullable=False),
        sa.Column(
            "format", tournament_format_enum, server_default="groups_with_playoffs", nullable=False
        ),
        sa.Column("league_id", sa.String(), nullable=True),
        sa.Column("league_points_calculated", sa.Boolean(), server_default="f", nullable=False),
        sa.Column("playoffs", sa.JSON(), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default="f", nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.ForeignKeyConstraint(["league_id"], ["leagues.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("tournaments")
    op.create_index(op.f("ix_tournaments_name"), "tournaments", ["name"], unique=False)
    op.create_index(op.f("ix_tournaments_status"), "tournaments", ["status"], unique=False)
    op.create_index(op.f("ix_tournaments_league_id"), "tournaments", ["league_id"], unique=False)
    op.create_index(op.f("ix_tournaments_deleted"), "tournaments", ["deleted"], unique=False)

    op.create_table(
        "tournament_players",
        sa.Column("tournament_id", sa.String(), nullable=False),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tournament_id", "player_id"),
    )
    op.create_index(
        op.f("ix_tournament_players_player_id"), "tournament_players", ["player_id"], unique=False
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tournament_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("groups")
    op.create_index(op.f("ix_groups_tournament_id"), "groups", ["tournament_id"], unique=False)

    op.create_table(
        "group_players",
        sa.Column("group_id", sa.String(), nullable=False),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("group_id", "player_id"),
    )
    op.create_index(op.f("ix_group_players_player_id"), "group_players", ["player_id"], unique=False)

    op.create_table(
        "group_standings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("group_id", sa.String(), nullable=False),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("legs_won", sa.Integer(), server_default="0", nullable=False),
        sa.Column("legs_lost", sa.Integer(), server_default="0", nullable=False),
        sa.Column("average", sa.Float(), server_default="0", nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("group_standings")
    op.create_index(op.f("ix_group_standings_group_id"), "group_standings", ["group_id"], unique=False)
    op.create_index(
        op.f("ix_group_standings_player_id"), "group_standings", ["player_id"], unique=False
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tournament_id", sa.String(), nullable=False),
        sa.Column("group_id", sa.String(), nullable=True),
        sa.Column("is_playoff", sa.Boolean(), server_default="f", nullable=False),
        sa.Column("player1_id", sa.String(), nullable=True),
        sa.Column("player2_id", sa.String(), nullable=True),
        sa.Column("winner_id", sa.String(), nullable=True),
        sa.Column("status", match_status_enum, server_default="pending", nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player1_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["player2_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("matches")
    op.create_index(op.f("ix_matches_tournament_id"), "matches", ["tournament_id"], unique=False)
    op.create_index(op.f("ix_matches_player1_id"), "matches", ["player1_id"], unique=False)
    op.create_index(op.f("ix_matches_player2_id"), "matches", ["player2_id"], unique=False)

    op.create_table(
        "legs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("match_id", sa.String(), nullable=False),
        sa.Column("player1_id", sa.String(), nullable=True),
        sa.Column("player2_id", sa.String(), nullable=True),
        sa.Column("winner_id", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player1_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["player2_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _id_index("legs")
    op.create_index(op.f("ix_legs_match_id"), "legs", ["match_id"], unique=False)

    for table, parent_column, parent_table in (
        ("dart_throws", "leg_id", "legs"),
        ("match_player_stats", "match_id", "matches"),
        ("tournament_stats", "tournament_id", "tournaments"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(), nullable=False),
            sa.Column(parent_column, sa.String(), nullable=False),
            sa.Column("player_id", sa.String(), nullable=False),
            sa.ForeignKeyConstraint([parent_column], [f"{parent_table}.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        _id_index(table)
        op.create_index(op.f(f"ix_{table}_{parent_column}"), table, [parent_column], unique=False)
        op.create_index(op.f(f"ix_{table}_player_id"), table, ["player_id"], unique=False)

    op.create_table(
        "league_tournament_results",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("league_id", sa.String(), nullable=False),
        sa.Column("tournament_id", sa.String(), nullable=False),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("placement", sa.Integer(), nullable=False),
        sa.Column("points_awarded", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.ForeignKeyConstraint(["league_id"], ["leagues.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("league_id", "tournament_id", "player_id"),
    )
    _id_index("league_tournament_results")
    for column in ("league_id", "tournament_id", "player_id"):
        op.create_index(
            op.f(f"ix_league_tournament_results_{column}"),
            "league_tournament_results",
            [column],
            unique=False,
        )

    op.create_table(
        "league_leaderboard",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("league_id", sa.String(), nullable=False),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("total_points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("tournaments_played", sa.Integer(), server_default="0", nullable=False),
        sa.Column("best_placement", sa.Integer(), nullable=True),
        sa.Column("worst_placement", sa.Integer(), nullable=True),
        sa.Column("avg_placement", sa.Numeric(), nullable=True),
        sa.Column("last_tournament_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.ForeignKeyConstraint(["league_id"], ["leagues.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("league_id", "player_id"),
    )
    _id_index("league_leaderboard")
    op.create_index(
        op.f("ix_league_leaderboard_league_id"), "league_leaderboard", ["league_id"], unique=False
    )
    op.create_index(
        op.f("ix_league_leaderboard_player_id"), "league_leaderboard", ["player_id"], unique=False
    )


def downgrade() -> None:
    for table in (
        "league_leaderboard",
        "league_tournament_results",
        "tournament_stats",
        "match_player_stats",
        "dart_throws",
        "legs",
        "matches",
        "group_standings",
        "group_players",
        "groups",
        "tournament_players",
        "tournaments",
        "league_members",
        "leagues",
        "players",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    match_status_enum.drop(bind, checkfirst=True)
    tournament_format_enum.drop(bind, checkfirst=True)
    tournament_status_enum.drop(bind, checkfirst=True)
