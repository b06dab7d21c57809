from typing import List, Optional, Sequence

from ..message import Message, MessageBuilder
from .common import NO_REASON, add_heading, add_quality, health_check, yes_no
from .models.sonarr import (
    SonarrDownload,
    SonarrEpisode,
    SonarrEpisodeFileDelete,
    SonarrGrab,
    SonarrHealth,
    SonarrRename,
    SonarrRenamedEpisodeFile,
    SonarrSeriesDelete,
    SonarrTest,
)

SOURCE = "Sonarr"


def _add_episodes(b: MessageBuilder, episodes: Sequence[SonarrEpisode]) -> None:
    if not episodes:
        b.add_line("No episodes specified.")
        b.add_break()
        return
    for ep in episodes:
        b.add_key_value("Season", f"{ep.season_number:02d}")
        b.add_key_value("Episode", f"{ep.episode_number:02d}")
        b.add_key_value("Title", ep.title)
        if ep.air_date_utc is not None:
            b.add_key_value("Air Date (UTC)", ep.air_date_utc.strftime("%Y-%m-%d"))
        b.add_break()


def _renamed_lines(files: Sequence[SonarrRenamedEpisodeFile]) -> List[str]:
    lines = []
    for i, f in enumerate(files, start=1):
        if f.previous_relative_path and f.relative_path:
            lines.append(f"{f.previous_relative_path} --> {f.relative_path}")
        else:
            lines.append(f"(File #{i} was missing path data)")
    return lines


def on_test(evt: SonarrTest, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Sonarr Test", evt.series.title, server_name)
    _add_episodes(b, evt.episodes)
    return b.build()


def on_grab(evt: SonarrGrab, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Series Grabbed", evt.series.title, server_name)
    add_quality(b, evt.release.quality)
    b.add_break()
    _add_episodes(b, evt.episodes)
    return b.build()


def on_download(evt: SonarrDownload, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Series Downloaded", evt.series.title, server_name)
    add_quality(b, evt.episode_file.quality)
    b.add_key_value("Is Upgrade", yes_no(evt.is_upgrade), code=True)
    b.add_break()
    _add_episodes(b, evt.episodes)
    return b.build()


def on_rename(evt: SonarrRename, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Series Renamed", evt.series.title, server_name)
    if evt.renamed_episode_files:
        b.add_list(_renamed_lines(evt.renamed_episode_files), code=True)
    else:
        b.add_line("No rename data found.")
    return b.build()


def on_series_delete(evt: SonarrSeriesDelete, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Series Deleted", evt.series.title, server_name)
    b.add_key_value("Files Deleted", yes_no(evt.deleted_files), code=True)
    return b.build()


def on_episode_file_delete(evt: SonarrEpisodeFileDelete, server_name: Optional[str]) -> Message:
    b = MessageBuilder()
    add_heading(b, "Series Episode Files Deleted", evt.series.title, server_name)
    b.add_key_value("Reason", evt.delete_reason or NO_REASON)
    quality = evt.episode_file.quality
    add_quality(b, quality.quality.name if quality else None)
    b.add_break()
    _add_episodes(b, evt.episodes)
    return b.build()


def on_health(evt: SonarrHealth, server_name: Optional[str]) -> Message:
    return health_check(SOURCE, evt.level, evt.message, evt.health_type, evt.wiki_url, server_name)


HANDLERS = {
    SonarrTest: on_test,
    SonarrGrab: on_grab,
    SonarrDownload: on_download,
    SonarrRename: on_rename,
    SonarrSeriesDelete: on_series_delete,
    SonarrEpisodeFileDelete: on_episode_file_delete,
    SonarrHealth: on_health,
}
