from typing import Optional

from ..message import Message, MessageBuilder
from .common import NO_REASON, add_heading, add_quality, health_check, yes_no
from .models.radarr import (
    RadarrDownload,
    RadarrGrab,
    RadarrHealth,
    RadarrMovie,
    RadarrMovieDelete,
    RadarrMovieFileDelete,
    RadarrRemoteMovie,
    RadarrRename,
    RadarrTest,
)

SOURCE = "Radarr"


def title_with_remote(movie: RadarrMovie, remote: RadarrRemoteMovie) -> str:
    """Prefer the remote title and year; fall back to the library movie."""
    if not remote.title:
        return title_with_movie(movie)
    if remote.year:
        return f"{remote.title} ({remote.year})"
    return remote.title


def title_with_movie(movie: RadarrMovie) -> str:
    if movie.release_date is not None:
        return f"{movie.title} ({movie.release_date.year})"
    return movie.title


def _add_release_date(b: MessageBuilder, movie: RadarrMovie) -> None:
    if movie.release_date is not None:
        b.add_key_value("Release Date", movie.release_date.strftime("%Y-%m-%d"))


def on_test(evt: RadarrTest, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Radarr Test", title_with_remote(evt.movie, evt.remote_movie), server_name)
    _add_release_date(b, evt.movie)
    add_quality(b, evt.release.quality)
    return b.build()


def on_grab(evt: RadarrGrab, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Movie Grabbed", title_with_remote(evt.movie, evt.remote_movie), server_name)
    _add_release_date(b, evt.movie)
    add_quality(b, evt.release.quality)
    return b.build()


def on_download(evt: RadarrDownload, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Movie Downloaded", title_with_remote(evt.movie, evt.remote_movie), server_name)
    _add_release_date(b, evt.movie)
    add_quality(b, evt.movie_file.quality)
    b.add_key_value("Is Upgrade", yes_no(evt.is_upgrade), code=True)
    return b.build()


def on_rename(evt: RadarrRename, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Movie Renamed", title_with_movie(evt.movie), server_name)
    if evt.movie.file_path:
        b.add_key_value("Path", evt.movie.file_path, code=True)
    return b.build()


def on_movie_delete(evt: RadarrMovieDelete, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Movie Deleted", title_with_movie(evt.movie), server_name)
    b.add_key_value("Files Deleted", yes_no(evt.deleted_files), code=True)
    return b.build()


def on_movie_file_delete(evt: RadarrMovieFileDelete, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Movie File Deleted", title_with_movie(evt.movie), server_name)
    b.add_key_value("Reason", evt.delete_reason or NO_REASON)
    b.add_key_value("Path", evt.movie_file.relative_path, code=True)
    return b.build()


def on_health(evt: RadarrHealth, server_name: Optional[str]) -> Message:
    return health_check(SOURCE, evt.level, evt.message, evt.health_type, evt.wiki_url, server_name)


HANDLERS = {
    RadarrTest: on_test,
    RadarrGrab: on_grab,
    RadarrDownload: on_download,
    RadarrRename: on_rename,
    RadarrMovieDelete: on_movie_delete,
    RadarrMovieFileDelete: on_movie_file_delete,
    RadarrHealth: on_health,
}
