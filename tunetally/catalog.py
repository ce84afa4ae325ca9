"""Songs and albums owned by artists."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from init import db
from models import Album, Song
from tunetally.errors import Malformed, NotFound
from tunetally.guard import AuthorizationGuard

logger = logging.getLogger(__name__)

SONG_FIELDS = ("name", "lyrics", "link")


def _find_album(name: str, artist_id: int, year: int) -> Album | None:
    return Album.query.filter_by(name=name, artist_id=artist_id, year=year).first()


def get_or_create_album(name: str, artist_id: int, year: int) -> Album:
    """Return the album matching (name, artist, year), creating it if needed."""
    album = _find_album(name, artist_id, year)
    if album is not None:
        return album

    album = Album(name=name, artist_id=artist_id, year=year)
    db.session.add(album)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request created the same album first.
        db.session.rollback()
        album = _find_album(name, artist_id, year)
        if album is None:
            raise
        return album

    logger.info("Created album %s %r for artist %s", album.id, name, artist_id)
    return album


def _album_for(guard: AuthorizationGuard, artist_id: int, album_id: int | None) -> int | None:
    # Album ids <= 0 mean "no album".
    if album_id is None or album_id <= 0:
        return None
    album = db.session.get(Album, album_id)
    if album is None:
        raise Malformed("Album does not exist")
    guard.require_ownership(artist_id, album.artist_id)
    return album.id


def create_song(
    guard: AuthorizationGuard,
    artist_id: int,
    name: str,
    lyrics: str,
    link: str,
    album_id: int | None = None,
) -> Song:
    song = Song(
        name=name,
        lyrics=lyrics,
        link=link,
        artist_id=artist_id,
        album_id=_album_for(guard, artist_id, album_id),
    )
    db.session.add(song)
    db.session.commit()
    logger.info("Artist %s created song %s", artist_id, song.id)
    return song


def get_song(song_id: int) -> Song:
    song = db.session.get(Song, song_id)
    if song is None:
        raise NotFound("Song not found")
    return song


def update_song(guard: AuthorizationGuard, user_id: int, song_id: int, changes: dict[str, Any]) -> Song:
    """Apply ``changes`` to a song owned by ``user_id``.

    Only ``name``, ``lyrics``, ``link`` and ``album`` are updatable; the owning
    artist never changes.
    """
    song = get_song(song_id)
    guard.require_ownership(user_id, song.artist_id)

    if "album" in changes:
        song.album_id = _album_for(guard, user_id, changes["album"])
    for field in SONG_FIELDS:
        if field in changes:
            setattr(song, field, changes[field])

    db.session.commit()
    logger.info("Artist %s updated song %s", user_id, song.id)
    return song


def delete_songs(guard: AuthorizationGuard, user_id: int, song_ids: Iterable[int]) -> int:
    """Delete a batch of songs, all of them or none.

    Ownership of every id is checked (and the rows locked) in the same
    transaction as the delete.
    """
    ids = set(song_ids)
    if not ids:
        raise Malformed("No song IDs provided")

    try:
        guard.require_ownership_of_all(user_id, ids)
        deleted = db.session.execute(
            delete(Song).where(Song.id.in_(ids)).execution_options(synchronize_session=False)
        ).rowcount
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Artist %s deleted songs %s", user_id, sorted(ids))
    return deleted


def songs_by_artist(artist_id: int) -> list[Song]:
    return Song.query.filter_by(artist_id=artist_id).order_by(Song.id).all()


def songs_in_album(album_id: int) -> list[Song]:
    return Song.query.filter_by(album_id=album_id).order_by(Song.id).all()
