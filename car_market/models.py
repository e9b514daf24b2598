# car_market/models.py

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Table, JSON
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()

# Понравившиеся пользователю посты (многие-ко-многим)
liked_posts = Table(
    "liked_posts",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("post_id", Integer, ForeignKey("posts.id"), primary_key=True),
)


class User(Base):
    """
    Модель пользователя
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    phone_number = Column(String(32), nullable=True)
    img_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Действующие refresh-токены пользователя
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="RefreshToken.id",
    )

    cars = relationship("Car", back_populates="owner")
    posts = relationship("Post", back_populates="publisher")
    liked_posts = relationship("Post", secondary=liked_posts, order_by="Post.id")


class RefreshToken(Base):
    """
    Выданный и ещё не отозванный refresh-токен
    """
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="refresh_tokens")


class Car(Base):
    """
    Модель автомобиля на продажу
    """
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, index=True)
    make = Column(String(100), nullable=False, index=True)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    hand = Column(Integer, nullable=False)
    color = Column(String(50), nullable=False)
    mileage = Column(Integer, nullable=False)
    city = Column(String(100), nullable=False)
    image_urls = Column(JSON, nullable=False, default=list)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    owner = relationship("User", back_populates="cars")
    post = relationship("Post", back_populates="car", uselist=False)


class Post(Base):
    """
    Модель объявления: один автомобиль, один автор, список комментариев
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    car_id = Column(Integer, ForeignKey("cars.id"), unique=True, nullable=False)
    publisher_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    car = relationship("Car", back_populates="post")
    publisher = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", order_by="Comment.id")

    @property
    def comment_ids(self) -> list[int]:
        return [comment.id for comment in self.comments]


class Comment(Base):
    """
    Модель комментария.

    Комментарий верхнего уровня принадлежит посту (post_id),
    ответ принадлежит родительскому комментарию (parent_id).
    """

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    publisher_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=True, index=True)
    parent_id = Column(Integer, ForeignKey("comments.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    publisher = relationship("User")
    post = relationship("Post", back_populates="comments")
    parent = relationship("Comment", back_populates="replies", remote_side="Comment.id")
    replies = relationship("Comment", back_populates="parent", order_by="Comment.id")

    @property
    def reply_ids(self) -> list[int]:
        return [reply.id for reply in self.replies]
