from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from .config import settings
from .base import Base

def make_engine(url: str, **kwargs) -> AsyncEngine:
    if url.startswith("sqlite"):
        eng = create_async_engine(url, **kwargs)

        # pysqlite defers BEGIN until the first write, which lets two writers both
        # hold SHARED locks and deadlock on promotion. Take the write lock up front.
        @event.listens_for(eng.sync_engine, "connect")
        def _no_implicit_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(eng.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return eng
    return create_async_engine(url, pool_pre_ping=True, **kwargs)

def make_sessionmaker(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(eng, expire_on_commit=False, class_=AsyncSession)

engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_sessionmaker(engine)

async def get_session():
    async with SessionLocal() as session:
        yield session

def import_models():
    # registers every table on Base.metadata
    from careslot.modules.directory import models as _directory  # noqa: F401
    from careslot.modules.availability import models as _availability  # noqa: F401
    from careslot.modules.exceptions import models as _exceptions  # noqa: F401
    from careslot.modules.appointments import models as _appointments  # noqa: F401
    from careslot.modules.booking import models as _booking  # noqa: F401

async def create_all(eng: AsyncEngine):
    import_models()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def init_models():
    ## In dev-only "create_all" mode, keep old behavior; otherwise, migrations own the schema.
    if settings.DB_MANAGE.lower() == "create_all":
        await create_all(engine)
