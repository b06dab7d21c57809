from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field

from .common import ArrModel


class SonarrSeries(ArrModel):
    id: int
    title: str
    path: str
    tvdb_id: Optional[int] = None
    tv_maze_id: Optional[int] = None
    imdb_id: Optional[str] = None
    series_type: Literal["standard", "daily", "anime"] = Field(alias="type")


class SonarrEpisode(ArrModel):
    id: int
    episode_number: int
    season_number: int
    title: str
    air_date: Optional[date] = None
    air_date_utc: Optional[datetime] = None


class SonarrRelease(ArrModel):
    quality: Optional[str] = None
    quality_version: Optional[int] = None
    release_group: Optional[str] = None
    release_title: Optional[str] = None
    indexer: Optional[str] = None
    size: Optional[int] = None


class SonarrEpisodeFile(ArrModel):
    id: int
    relative_path: str
    path: str
    quality: Optional[str] = None
    quality_version: Optional[int] = None
    release_group: Optional[str] = None
    scene_name: Optional[str] = None
    size: Optional[int] = None


class SonarrQuality(ArrModel):
    id: int
    name: str
    source: Optional[str] = None
    resolution: int


class SonarrQualityModel(ArrModel):
    quality: SonarrQuality


class SonarrEpisodeDeletedFile(ArrModel):
    """Sonarr reports the quality of a deleted file as a nested model, not a string."""

    id: int
    relative_path: str
    path: str
    quality: Optional[SonarrQualityModel] = None
    release_group: Optional[str] = None
    scene_name: Optional[str] = None
    size: Optional[int] = None
    date_added: Optional[datetime] = None


class SonarrRenamedEpisodeFile(ArrModel):
    relative_path: Optional[str] = None
    path: Optional[str] = None
    previous_relative_path: Optional[str] = None
    previous_path: Optional[str] = None


class SonarrTest(ArrModel):
    event_type: Literal["Test"]
    series: SonarrSeries
    episodes: List[SonarrEpisode]


class SonarrGrab(ArrModel):
    event_type: Literal["Grab"]
    series: SonarrSeries
    episodes: List[SonarrEpisode]
    release: SonarrRelease
    download_client: Optional[str] = None
    download_id: Optional[str] = None


class SonarrDownload(ArrModel):
    event_type: Literal["Download"]
    series: SonarrSeries
    episodes: List[SonarrEpisode]
    episode_file: SonarrEpisodeFile
    is_upgrade: bool
    download_client: Optional[str] = None
    download_id: Optional[str] = None


class SonarrRename(ArrModel):
    event_type: Literal["Rename"]
    series: SonarrSeries
    renamed_episode_files: List[SonarrRenamedEpisodeFile]


class SonarrSeriesDelete(ArrModel):
    event_type: Literal["SeriesDelete"]
    series: SonarrSeries
    deleted_files: bool


class SonarrEpisodeFileDelete(ArrModel):
    event_type: Literal["EpisodeFileDelete"]
    series: SonarrSeries
    episodes: List[SonarrEpisode]
    episode_file: SonarrEpisodeDeletedFile
    delete_reason: Optional[str] = None


class SonarrHealth(ArrModel):
    event_type: Literal["Health"]
    level: Optional[str] = None
    message: Optional[str] = None
    health_type: Optional[str] = Field(default=None, alias="type")
    wiki_url: Optional[str] = None


SonarrEvent = Annotated[
    Union[
        SonarrTest,
        SonarrGrab,
        SonarrDownload,
        SonarrRename,
        SonarrSeriesDelete,
        SonarrEpisodeFileDelete,
        SonarrHealth,
    ],
    Field(discriminator="event_type"),
]
