import re
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import create_engine, desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from init_db import Like, Post, enable_sqlite_foreign_keys, init_db
from logger import get_logger
from schemas import (
    ErrorOut, LikeCount, LikeCreate, LikeStatus, PostCreate, PostCreated
)

logger = get_logger()


def create_db_engine(url: str = config.DATABASE_URL):
    """Build the engine shared by all requests.

    SQLite connections are used from the server's threads, and an in-memory
    database lives only as long as its connection, so it gets a single
    shared one.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=config.SQL_ECHO)

    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(url, echo=config.SQL_ECHO, **options)
    enable_sqlite_foreign_keys(engine)
    return engine


engine = create_db_engine()

# Session factory, one session per request
SessionLocal = sessionmaker(autoflush=False, bind=engine)


# Dependency that opens and always closes a session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    logger.info("Database synchronized.")
    yield


app = FastAPI(title="Post likes", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorOut(error=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


# Malformed JSON or wrongly typed fields
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
        request: Request, exc: RequestValidationError
):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorOut(error="Invalid input").model_dump(exclude_none=True),
    )


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorOut(
            error="Internal server error", details=str(exc)).model_dump(),
    )


# Anything else still answers with JSON; Starlette re-raises it afterwards
# so the server logs the traceback too
@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    logger.exception("Unexpected failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorOut(
            error="Internal server error", details=str(exc)).model_dump(),
    )


def get_post_or_404(db: Session, post_str_id: str) -> Post:
    post = db.query(Post).filter(Post.post_str_id == post_str_id).first()
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def require_user_id(like: Optional[LikeCreate]) -> str:
    if like is None or not like.user_id_str:
        raise HTTPException(status_code=400, detail="User ID is required")
    return like.user_id_str


LEADING_INT = re.compile(r"[+-]?\d+")

# SQLite binds integers as signed 64-bit
MAX_LIMIT = 2 ** 63 - 1


def parse_limit(raw: Optional[str]) -> int:
    """Read the leading integer of the query value, so "2.5" means 2.

    Anything without one, and zero or negative values, give the default.
    """
    match = LEADING_INT.match(raw.strip()) if raw else None
    if match is None:
        return config.DEFAULT_TOP_LIMIT
    limit = int(match.group())
    if limit <= 0:
        return config.DEFAULT_TOP_LIMIT
    return min(limit, MAX_LIMIT)


# Endpoint for creating a post
@app.post("/posts", response_model=PostCreated,
          status_code=status.HTTP_201_CREATED)
async def create_post(
        post: Optional[PostCreate] = None, db: Session = Depends(get_db)
):
    if post is None or not post.post_str_id or not post.content:
        raise HTTPException(status_code=400, detail="Invalid input")
    db_post = Post(post_str_id=post.post_str_id, content=post.content)
    db.add(db_post)
    # The unique constraint on post_str_id decides between concurrent creators
    try:
        db.commit()
        db.refresh(db_post)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Post with this ID already exists")
    logger.info("Created post %s (id=%d)", db_post.post_str_id, db_post.id)
    return PostCreated(
        internal_db_id=db_post.id, post_str_id=db_post.post_str_id)


# Endpoint for the top posts by number of likes
@app.get("/posts/top", response_model=List[LikeCount])
async def read_top_posts(
        limit: Optional[str] = None, db: Session = Depends(get_db)
):
    like_count = func.count(Like.id).label("like_count")
    rows = (
        db.query(Post.post_str_id, like_count)
        .outerjoin(Like, Like.post_id == Post.id)
        .group_by(Post.id)
        .order_by(desc(like_count), Post.id)
        .limit(parse_limit(limit))
        .all()
    )
    return [
        {"post_str_id": row.post_str_id, "like_count": row.like_count}
        for row in rows
    ]


# Endpoint for liking a post
@app.post("/posts/{post_str_id}/like", response_model=LikeStatus,
          status_code=status.HTTP_201_CREATED)
async def like_post(
        post_str_id: str, response: Response,
        like: Optional[LikeCreate] = None, db: Session = Depends(get_db)
):
    user_id_str = require_user_id(like)
    post = get_post_or_404(db, post_str_id)
    db.add(Like(user_id_str=user_id_str, post_id=post.id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.debug("%s already liked %s", user_id_str, post_str_id)
        response.status_code = status.HTTP_200_OK
        return LikeStatus(status="already_liked")
    logger.info("%s liked %s", user_id_str, post_str_id)
    return LikeStatus(status="liked")


# Endpoint for the number of likes of a post
@app.get("/posts/{post_str_id}/likes", response_model=LikeCount)
async def read_like_count(post_str_id: str, db: Session = Depends(get_db)):
    post = get_post_or_404(db, post_str_id)
    count = db.query(func.count(Like.id)).filter(
        Like.post_id == post.id).scalar()
    return LikeCount(post_str_id=post.post_str_id, like_count=count or 0)


# Endpoint for removing a like
@app.delete("/posts/{post_str_id}/like", response_model=LikeStatus)
async def unlike_post(
        post_str_id: str, like: Optional[LikeCreate] = None,
        db: Session = Depends(get_db)
):
    user_id_str = require_user_id(like)
    post = get_post_or_404(db, post_str_id)
    deleted = db.query(Like).filter(
        Like.user_id_str == user_id_str, Like.post_id == post.id
    ).delete(synchronize_session=False)
    db.commit()
    if not deleted:
        logger.debug("%s had not liked %s", user_id_str, post_str_id)
        return LikeStatus(status="not_liked_previously")
    logger.info("%s unliked %s", user_id_str, post_str_id)
    return LikeStatus(status="unliked")


# Endpoint for the posts a user has liked, in the order they were liked
@app.get("/users/{user_id_str}/liked-posts", response_model=List[str])
async def read_liked_posts(user_id_str: str, db: Session = Depends(get_db)):
    rows = (
        db.query(Post.post_str_id)
        .join(Like, Like.post_id == Post.id)
        .filter(Like.user_id_str == user_id_str)
        .order_by(Like.id)
        .all()
    )
    return [row.post_str_id for row in rows]


def main():
    logger.info("Server is running on port %d", config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
