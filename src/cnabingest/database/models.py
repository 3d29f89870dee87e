"""SQLAlchemy models for the cnabingest database."""

import uuid
from datetime import datetime, UTC
from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Time,
    Numeric,
    UniqueConstraint,
    Index,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class File(Base):
    """Uploaded CNAB file model."""

    __tablename__ = "files"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)
    object_key = Column(String(500), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default="Uploaded")
    error_message = Column(String(1000), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_files_status", "status"),)

    # Relationships
    transactions = relationship("Transaction", back_populates="file", cascade="all, delete-orphan")


class Store(Base):
    """Store model; (name, owner_name) is the store identity."""

    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(19), nullable=False)
    owner_name = Column(String(14), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("name", "owner_name", name="uq_store_identity"),)

    # Relationships
    transactions = relationship("Transaction", back_populates="store")


class TransactionType(Base):
    """Transaction type lookup model."""

    __tablename__ = "transaction_types"

    code = Column(Integer, primary_key=True, autoincrement=False)
    description = Column(String(100), nullable=False)
    nature = Column(String(50), nullable=False)
    sign = Column(String(1), nullable=False)


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    file_id = Column(String(36), ForeignKey("files.id", ondelete="CASCADE"), nullable=False)
    store_id = Column(String(36), ForeignKey("stores.id"), nullable=False)
    type_code = Column(Integer, ForeignKey("transaction_types.code"), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    occurred_on = Column(Date, nullable=False)
    occurred_at = Column(Time, nullable=False)
    customer_id = Column(String(11), nullable=False)
    card_id = Column(String(12), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_transactions_file_id", "file_id"),
        Index("idx_transactions_store_date", "store_id", "occurred_on"),
    )

    # Relationships
    file = relationship("File", back_populates="transactions")
    store = relationship("Store", back_populates="transactions")
    transaction_type = relationship("TransactionType")


def _enable_sqlite_transactions(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN so savepoints and foreign keys work on pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_transactions(engine)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
