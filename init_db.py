from sqlalchemy import (
    Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint,
    event, func
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# Describe the database table models
class Post(Base):
    __tablename__ = "posts"
    # ids of deleted posts are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    post_str_id = Column(String, unique=True, index=True, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(),
        onupdate=func.now(), nullable=False)

    likes = relationship(
        "Like", back_populates="post",
        cascade="all, delete-orphan", passive_deletes=True)


class Like(Base):
    __tablename__ = "likes"
    # a user can like a post only once
    __table_args__ = (UniqueConstraint("user_id_str", "post_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id_str = Column(String, index=True, nullable=False)
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(),
        onupdate=func.now(), nullable=False)

    post = relationship("Post", back_populates="likes")


def enable_sqlite_foreign_keys(engine):
    """SQLite ignores ON DELETE CASCADE unless the pragma is on per connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create the tables in the database
def init_db(engine):
    Base.metadata.create_all(bind=engine)
