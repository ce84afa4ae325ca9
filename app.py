from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from werkzeug.routing import IntegerConverter

from init import db
from models import Album, Role, Song, User
from tunetally import accounts, catalog, stats
from tunetally.errors import Malformed, NotFound
from tunetally.guard import current_guard, role_required

api = Blueprint("api", __name__, url_prefix="/api")

# Ids and years are stored in signed 64-bit INTEGER columns.
INT_MIN, INT_MAX = -2 ** 63, 2 ** 63 - 1


def _is_int(value):
    # JSON true/false decode to bool, which is also an int.
    return isinstance(value, int) and not isinstance(value, bool) and INT_MIN <= value <= INT_MAX


class IdConverter(IntegerConverter):
    """`<id:...>` path segments: digits that fit an INTEGER column."""

    def to_python(self, value):
        value = super().to_python(value)
        if not _is_int(value):
            raise Malformed("Invalid id format")
        return value


def _json_body(kind=dict):
    body = request.get_json(silent=True)
    if not isinstance(body, kind):
        raise Malformed("Invalid request body")
    return body


def _field(body, name, kind=str, required=True):
    """Read one field from a JSON object, checking its type."""
    if name not in body or body[name] is None:
        if required:
            raise Malformed(f"Missing field '{name}'")
        return None
    value = body[name]
    if not (_is_int(value) if kind is int else isinstance(value, kind)):
        raise Malformed(f"Field '{name}' has the wrong type")
    return value


def _ranking_response(ranking, missing):
    if ranking is None:
        raise NotFound(missing)
    return jsonify(ranking.to_dict())


# --- Authentication ---

@api.route('/auth/register', methods=['POST'])
def register():
    """Create a listener or artist account."""
    body = _json_body()
    username = _field(body, "username")
    password = _field(body, "password")
    email = _field(body, "email")
    role_name = _field(body, "role")
    if not username or not password:
        raise Malformed("Username and password must not be empty")
    try:
        role = Role[role_name.upper()]
    except KeyError:
        raise Malformed(f"Unknown role '{role_name}'")

    accounts.register_user(username, password, email, role)
    return "User registered successfully.", 201


@api.route('/auth/login', methods=['POST'])
def login():
    """Exchange a username and password for a session token."""
    body = _json_body()
    token = accounts.login(
        current_app.extensions["tunetally.tokens"],
        _field(body, "username"),
        _field(body, "password"),
    )
    return jsonify({"token": token})


@api.route('/auth/validate')
@login_required
def validate_token():
    """Return the account behind the bearer token."""
    return jsonify(current_user.to_dict())


@api.route('/auth/<id:user_id>')
def get_username(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return jsonify(user.username)


@api.route('/user/songs')
@login_required
def get_songs_from_user():
    """Songs published by the authenticated user."""
    return jsonify([song.to_dict() for song in catalog.songs_by_artist(current_user.id)])


# --- Songs ---

@api.route('/songs', methods=['PUT'])
@role_required(Role.ARTIST)
def create_song():
    """Publish a song. The authenticated artist becomes its owner."""
    body = _json_body()
    song = catalog.create_song(
        current_guard(),
        current_user.id,
        name=_field(body, "name"),
        lyrics=_field(body, "lyrics"),
        link=_field(body, "link"),
        album_id=_field(body, "album", int, required=False),
    )
    return jsonify(song.to_dict()), 201


@api.route('/songs')
def get_songs():
    return jsonify([song.to_dict() for song in Song.query.order_by(Song.id).all()])


@api.route('/songs', methods=['DELETE'])
@login_required
def delete_songs():
    """
    Delete a batch of songs given as a JSON list of ids.
    Nothing is deleted unless the caller owns every song in the list.
    """
    ids = _json_body(list)
    if not all(_is_int(i) for i in ids):
        raise Malformed("Song IDs must be integers")

    catalog.delete_songs(current_guard(), current_user.id, ids)
    return "", 204


@api.route('/songs/<id:song_id>')
def get_song(song_id):
    return jsonify(catalog.get_song(song_id).to_dict())


@api.route('/songs/<id:song_id>', methods=['PATCH'])
@role_required(Role.ARTIST)
def update_song(song_id):
    """Change a song's name, lyrics, link or album. Only its owner may do this."""
    body = _json_body()
    changes = {}
    for name in catalog.SONG_FIELDS:
        if name in body:
            changes[name] = _field(body, name)
    if "album" in body:
        changes["album"] = _field(body, "album", int, required=False)

    song = catalog.update_song(current_guard(), current_user.id, song_id, changes)
    return jsonify(song.to_dict())


# --- Albums ---

@api.route('/albums', methods=['PUT'])
@role_required(Role.ARTIST)
def get_or_create_album():
    """Return the caller's album with this name and year, creating it if needed."""
    body = _json_body()
    album = catalog.get_or_create_album(
        _field(body, "name"),
        current_user.id,
        _field(body, "year", int),
    )
    return jsonify(album.to_dict())


@api.route('/albums')
def get_albums():
    return jsonify([album.to_dict() for album in Album.query.order_by(Album.id).all()])


@api.route('/albums/<id:album_id>')
def get_album(album_id):
    album = db.session.get(Album, album_id)
    if album is None:
        raise NotFound("Album not found")
    return jsonify(album.to_dict())


@api.route('/albums/<id:album_id>/songs')
def get_album_songs(album_id):
    return jsonify([song.to_dict() for song in catalog.songs_in_album(album_id)])


# --- Statistics ---

@api.route('/stats/play/<id:song_id>', methods=['PUT'])
@login_required
def increment(song_id):
    """Record that the authenticated user played a song."""
    play = stats.record_play(song_id, current_user.id)
    return jsonify(play.to_dict()), 201


@api.route('/stats/user')
@login_required
def get_most_played_song_from_user():
    return _ranking_response(stats.most_played_song(current_user.id), "No songs found.")


@api.route('/stats/user/album')
@login_required
def get_most_played_album_from_user():
    return _ranking_response(stats.most_played_album(current_user.id), "No albums found.")


@api.route('/stats/user/artist')
@login_required
def get_most_played_artist_from_user():
    return _ranking_response(stats.most_played_artist(current_user.id), "No artists found.")


@api.route('/stats/global')
@login_required
def get_most_played_song():
    return _ranking_response(stats.most_played_song(), "No songs found.")


@api.route('/stats/global/album')
@login_required
def get_most_played_album():
    return _ranking_response(stats.most_played_album(), "No albums found.")


@api.route('/stats/global/artist')
@login_required
def get_most_played_artist():
    return _ranking_response(stats.most_played_artist(), "No artists found.")


if __name__ == '__main__':
    from init import create_app

    application = create_app()
    application.run(port=application.config["PORT"], debug=True)
