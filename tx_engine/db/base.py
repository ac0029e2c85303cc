from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session
from tx_engine.config import settings
import os


def make_engine(dsn: str):
    if dsn in ("sqlite://", "sqlite:///:memory:"):
        # một kết nối dùng chung, nếu không mỗi session thấy một DB rỗng khác nhau
        return create_engine(dsn, echo=False, connect_args={"check_same_thread": False},
                             poolclass=StaticPool)
    if dsn.startswith("sqlite:///./"):
        os.makedirs(os.path.dirname(dsn[len("sqlite:///"):]) or ".", exist_ok=True)
    if dsn.startswith("sqlite"):
        return create_engine(dsn, echo=False, connect_args={"check_same_thread": False})
    return create_engine(dsn, echo=False, pool_pre_ping=True)


engine = make_engine(settings.db_dsn)


def init_db(bind=None):
    # import models để SQLModel đăng ký bảng
    from tx_engine.db import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
