from heliclockter import datetime_utc

from dartleague.database import database
from dartleague.exceptions import StoreError, translate_store_errors
from dartleague.models.db.player import Player
from dartleague.utils.id_types import PlayerId
from dartleague.utils.types import generate_id

_PLAYER_SEARCH_LIMIT = 50


async def sql_get_player(player_id: PlayerId) -> Player | None:
    query = """
        SELECT *
        FROM players
        WHERE id = :player_id
        """
    async with translate_store_errors("read player", table="players", record_id=player_id):
        result = await database.fetch_one(query=query, values={"player_id": player_id})
    return Player.model_validate(dict(result._mapping)) if result is not None else None


async def sql_search_players(search: str | None = None) -> list[Player]:
    search_filter = "WHERE name ILIKE :search" if search else ""
    limit_filter = "LIMIT :limit" if search else ""
    query = f"""
        SELECT *
        FROM players
        {search_filter}
        ORDER BY name ASC
        {limit_filter}
        """
    values = {"search": f"%{search}%", "limit": _PLAYER_SEARCH_LIMIT} if search else {}
    async with translate_store_errors("search players", table="players"):
        rows = await database.fetch_all(query=query, values=values)
    return [Player.model_validate(dict(row._mapping)) for row in rows]


async def sql_delete_player(player_id: PlayerId) -> None:
    query = "DELETE FROM players WHERE id = :player_id"
    async with translate_store_errors("delete player", table="players", record_id=player_id):
        await database.execute(query=query, values={"player_id": player_id})


async def sql_get_player_by_name(name: str) -> Player | None:
    query = """
        SELECT *
        FROM players
        WHERE name = :name
        ORDER BY created ASC
        LIMIT 1
        """
    async with translate_store_errors("read player by name", table="players"):
        result = await database.fetch_one(query=query, values={"name": name})
    return Player.model_validate(dict(result._mapping)) if result is not None else None


async def sql_create_player(name: str) -> Player:
    query = """
        INSERT INTO players (id, name, created)
        VALUES (:id, :name, :created)
        RETURNING *
        """
    player_id = generate_id()
    async with translate_store_errors("create player", table="players", record_id=player_id):
        result = await database.fetch_one(
            query=query,
            values={"id": player_id, "name": name, "created": datetime_utc.now()},
        )
    if result is None:
        raise StoreError("create player", table="players", record_id=player_id)
    return Player.model_validate(dict(result._mapping))
