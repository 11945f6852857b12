import os
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

# hosted Postgres URLs -> the psycopg3 driver pinned in the postgres extra
_PG_PREFIXES = ("postgres://", "postgresql://")
_PG_DRIVER = "postgresql+psycopg://"

# server databases only; sqlite keeps the Flask-SQLAlchemy defaults
_POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_recycle": 270,
    "pool_size": 5,
    "max_overflow": 2,
}


def normalize_db_url(url: str) -> str:
    for prefix in _PG_PREFIXES:
        if url and url.startswith(prefix):
            return _PG_DRIVER + url[len(prefix):]
    return url


def init_db(app):
    url = normalize_db_url(app.config.get("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL", ""))
    app.config["SQLALCHEMY_DATABASE_URI"] = url
    if not url.startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", dict(_POOL_OPTIONS))
    db.init_app(app)
