import enum
from datetime import datetime, timezone

from flask_login import UserMixin

from init import db


def _utcnow():
    return datetime.now(timezone.utc)


class Role(enum.Enum):
    """Closed set of account roles."""
    LISTENER = "LISTENER"
    ARTIST = "ARTIST"


class User(UserMixin, db.Model):
    """
    Registered account.
    Stores credentials and the role that decides which endpoints are open to it.
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(Role, name="user_role"), nullable=False, default=Role.LISTENER)
    creation = db.Column(db.DateTime, nullable=False, default=_utcnow)
    songs = db.relationship("Song", backref="owner", lazy=True, passive_deletes=True)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
            "creation": self.creation.isoformat() if self.creation else None,
        }


class Album(db.Model):
    """
    Album published by an artist.
    (name, artist, year) is unique, albums are looked up before they are created.
    """
    __tablename__ = "albums"
    __table_args__ = (db.UniqueConstraint("name", "artist_id", "year", name="uq_album_name_artist_year"),)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    artist_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    songs = db.relationship("Song", backref="album", lazy=True, passive_deletes=True)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "artist": self.artist_id, "year": self.year}


class Song(db.Model):
    __tablename__ = "songs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    lyrics = db.Column(db.Text, nullable=False, default="")
    artist_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    album_id = db.Column(db.Integer, db.ForeignKey("albums.id", ondelete="SET NULL"), nullable=True)
    link = db.Column(db.String(500), nullable=False, default="")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "lyrics": self.lyrics,
            "artist": self.artist_id,
            "album": self.album_id,
            "link": self.link,
        }


class Play(db.Model):
    """
    One listening event. Rows are only ever inserted.
    """
    __tablename__ = "plays"

    id = db.Column(db.Integer, primary_key=True)
    song_id = db.Column(db.Integer, db.ForeignKey("songs.id", ondelete="CASCADE"), nullable=False, index=True)
    listener_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "song": self.song_id,
            "listener": self.listener_id,
            "date": self.date.isoformat() if self.date else None,
        }
