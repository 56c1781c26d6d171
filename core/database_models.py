from datetime import datetime
import uuid

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Column, String, DateTime, Text

db = SQLAlchemy()


def _new_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    password_salt = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Public fields only; password material never leaves the model"""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'


class Post(db.Model):
    __tablename__ = 'posts'

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    # Owner reference, not enforced by the database
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Post {self.id} {self.title!r}>'
