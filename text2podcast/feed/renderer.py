"""Minimal RSS 2.0 podcast feed with iTunes tags."""

import xml.sax.saxutils as saxutils
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime

from text2podcast.models import Episode, EpisodeSource

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ATOM_NS = "http://www.w3.org/2005/Atom"

SOURCE_LABELS = {
    EpisodeSource.URL: "Web URL",
    EpisodeSource.ARTIFACT: "Artifact",
    EpisodeSource.MARKDOWN: "Direct Input",
}


@dataclass
class PodcastInfo:
    """Channel-level feed metadata."""
    title: str = "Text to Podcast"
    description: str = "Personal podcast feed for text content"
    author: str = "Podcast Generator"
    email: str = "noreply@example.com"
    language: str = "en"
    base_url: str = "http://localhost:8000"

    @property
    def feed_url(self) -> str:
        return f"{self.base_url}/podcast.xml"


def format_duration(seconds: int) -> str:
    """Format seconds as M:SS, or H:MM:SS from one hour up."""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _esc(value: str) -> str:
    return saxutils.escape(value, {'"': "&quot;"})


class FeedRenderer:
    """Render stored episodes into a podcast RSS document."""

    def __init__(self, podcast: PodcastInfo):
        self.podcast = podcast

    def render(self, episodes: list[Episode]) -> str:
        p = self.podcast
        pub_date = episodes[0].created_at if episodes else datetime.now(timezone.utc)
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<rss version="2.0" xmlns:itunes="{ITUNES_NS}" xmlns:atom="{ATOM_NS}">',
            "<channel>",
            f"<title>{_esc(p.title)}</title>",
            f"<link>{_esc(p.base_url)}</link>",
            f"<description>{_esc(p.description)}</description>",
            f"<language>{_esc(p.language)}</language>",
            f"<pubDate>{format_datetime(pub_date)}</pubDate>",
            "<ttl>60</ttl>",
            f'<atom:link href="{_esc(p.feed_url)}" rel="self" type="application/rss+xml"/>',
            f"<itunes:author>{_esc(p.author)}</itunes:author>",
            f"<itunes:summary>{_esc(p.description)}</itunes:summary>",
            "<itunes:owner>",
            f"<itunes:name>{_esc(p.author)}</itunes:name>",
            f"<itunes:email>{_esc(p.email)}</itunes:email>",
            "</itunes:owner>",
            f'<itunes:image href="{_esc(p.base_url)}/podcast-logo.png"/>',
            '<itunes:category text="Technology"/>',
            "<itunes:explicit>false</itunes:explicit>",
            "<itunes:type>episodic</itunes:type>",
        ]
        for episode in episodes:
            lines.extend(self._item(episode))
        lines.extend(["</channel>", "</rss>"])
        return "\n".join(lines) + "\n"

    def _item(self, episode: Episode) -> list[str]:
        base = self.podcast.base_url
        description = self._description(episode)
        return [
            "<item>",
            f"<title>{_esc(episode.title)}</title>",
            f"<description>{_esc(description)}</description>",
            f"<link>{_esc(base)}/episode/{episode.id}</link>",
            f'<guid isPermaLink="false">{episode.id}</guid>',
            f"<pubDate>{format_datetime(episode.created_at)}</pubDate>",
            f'<enclosure url="{_esc(base)}/audio/{_esc(episode.file_name)}" '
            f'length="{episode.file_size}" type="audio/mpeg"/>',
            f"<itunes:author>{_esc(self.podcast.author)}</itunes:author>",
            f"<itunes:summary>{_esc(description)}</itunes:summary>",
            f"<itunes:duration>{format_duration(episode.duration)}</itunes:duration>",
            "<itunes:explicit>false</itunes:explicit>",
            "<itunes:episodeType>full</itunes:episodeType>",
            "</item>",
        ]

    @staticmethod
    def _description(episode: Episode) -> str:
        parts = [f"Episode: {episode.title}"]
        if episode.source_url:
            parts.append(f"Source: {episode.source_url}")
        parts.append(
            f"Generated on {episode.created_at:%Y-%m-%d}\n"
            f"Duration: {format_duration(episode.duration)}\n"
            f"Source Type: {SOURCE_LABELS.get(episode.source_kind, 'Unknown')}"
        )
        return "\n\n".join(parts)


def validate_feed(feed_xml: str) -> list[str]:
    """Return structural problems found in a feed document (empty if none)."""
    errors = []
    if not feed_xml.startswith("<?xml"):
        errors.append("Dichiarazione XML mancante")
    if "<rss" not in feed_xml:
        errors.append("Elemento radice <rss> mancante")
    if "<channel>" not in feed_xml:
        errors.append("Elemento <channel> mancante")
    for element in ("title", "link", "description"):
        if f"<{element}>" not in feed_xml:
            errors.append(f"Elemento obbligatorio mancante: {element}")
    if "xmlns:itunes" not in feed_xml:
        errors.append("Namespace iTunes mancante")
    return errors
