from heliclockter import datetime_utc

from dartleague.models.db.shared import BaseModelORM
from dartleague.utils.id_types import PlayerId


class Player(BaseModelORM):
    id: PlayerId
    name: str
    created: datetime_utc | None = None
