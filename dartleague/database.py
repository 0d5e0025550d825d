from databases import Database

from dartleague.config import config

database = Database(str(config.pg_dsn))
