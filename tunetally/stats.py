"""Play recording and "most played" rankings.

Every ranking joins the play log with one dimension (song, album or the
song's artist), optionally keeps a single listener's plays, counts plays per
dimension row and returns the top one. Equal counts are broken by the lowest
id so the answer is deterministic.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select

from init import db
from models import Album, Play, Song, User
from tunetally.errors import NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ranking:
    item: Any
    plays: int

    def to_dict(self):
        return {**self.item.to_dict(), "plays": self.plays}


def record_play(song_id, listener_id):
    """Append one play. No deduplication, any listener may play any song."""
    if db.session.get(Song, song_id) is None:
        raise NotFound("Song not found")

    play = Play(song_id=song_id, listener_id=listener_id)
    db.session.add(play)
    db.session.commit()
    logger.debug("Listener %s played song %s", listener_id, song_id)
    return play


def _top(stmt, dimension, listener_id):
    plays = func.count(Play.id)
    stmt = stmt.add_columns(plays)
    if listener_id is not None:
        stmt = stmt.where(Play.listener_id == listener_id)
    stmt = stmt.group_by(dimension.id).order_by(plays.desc(), dimension.id.asc()).limit(1)

    row = db.session.execute(stmt).first()
    if row is None:
        return None
    return Ranking(item=row[0], plays=row[1])


def most_played_song(listener_id=None):
    """Most played song overall, or for one listener."""
    stmt = select(Song).join(Play, Play.song_id == Song.id)
    return _top(stmt, Song, listener_id)


def most_played_album(listener_id=None):
    """Most played album. Plays of songs without an album do not count."""
    stmt = (
        select(Album)
        .join(Song, Song.album_id == Album.id)
        .join(Play, Play.song_id == Song.id)
    )
    return _top(stmt, Album, listener_id)


def most_played_artist(listener_id=None):
    stmt = (
        select(User)
        .join(Song, Song.artist_id == User.id)
        .join(Play, Play.song_id == Song.id)
    )
    return _top(stmt, User, listener_id)
