from datetime import date
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .common import ArrModel


class RadarrMovie(ArrModel):
    id: int
    title: str
    file_path: Optional[str] = None
    folder_path: Optional[str] = None
    release_date: Optional[date] = None
    tmdb_id: Optional[int] = None
    imdb_id: Optional[str] = None


class RadarrRemoteMovie(ArrModel):
    title: str
    year: Optional[int] = None
    tmdb_id: Optional[int] = None
    imdb_id: Optional[str] = None


class RadarrRelease(ArrModel):
    quality: Optional[str] = None
    quality_version: Optional[int] = None
    release_group: Optional[str] = None
    release_title: Optional[str] = None
    indexer: Optional[str] = None
    size: Optional[int] = None


class RadarrMovieFile(ArrModel):
    id: int
    relative_path: str
    path: str
    quality: Optional[str] = None
    quality_version: Optional[int] = None
    release_group: Optional[str] = None
    scene_name: Optional[str] = None
    size: Optional[int] = None


class RadarrTest(ArrModel):
    event_type: Literal["Test"]
    movie: RadarrMovie
    remote_movie: RadarrRemoteMovie
    release: RadarrRelease


class RadarrGrab(ArrModel):
    event_type: Literal["Grab"]
    movie: RadarrMovie
    remote_movie: RadarrRemoteMovie
    release: RadarrRelease
    download_client: Optional[str] = None
    download_id: Optional[str] = None


class RadarrDownload(ArrModel):
    event_type: Literal["Download"]
    movie: RadarrMovie
    remote_movie: RadarrRemoteMovie
    movie_file: RadarrMovieFile
    is_upgrade: bool
    download_client: Optional[str] = None
    download_id: Optional[str] = None


class RadarrRename(ArrModel):
    event_type: Literal["Rename"]
    movie: RadarrMovie


class RadarrMovieDelete(ArrModel):
    event_type: Literal["MovieDelete"]
    movie: RadarrMovie
    deleted_files: bool


class RadarrMovieFileDelete(ArrModel):
    event_type: Literal["MovieFileDelete"]
    movie: RadarrMovie
    movie_file: RadarrMovieFile
    delete_reason: Optional[str] = None


class RadarrHealth(ArrModel):
    event_type: Literal["Health"]
    level: Optional[str] = None
    message: Optional[str] = None
    health_type: Optional[str] = Field(default=None, alias="type")
    wiki_url: Optional[str] = None


RadarrEvent = Annotated[
    Union[
        RadarrTest,
        RadarrGrab,
        RadarrDownload,
        RadarrRename,
        RadarrMovieDelete,
        RadarrMovieFileDelete,
        RadarrHealth,
    ],
    Field(discriminator="event_type"),
]
