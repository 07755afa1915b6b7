"""
Pydantic models for the durable cache file and API responses
"""

from datetime import datetime
from typing import Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from news_feed import CacheEntry, FeedSnapshot, NewsItem

CACHE_SCHEMA_VERSION = 1


# =============================================================================
# Durable cache schema
# =============================================================================


class NewsItemRecord(BaseModel):
    """Stored form of a news item"""
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    link: str | None = None
    publish_date: AwareDatetime | None = None
    description: str | None = None

    @classmethod
    def from_item(cls, item: NewsItem) -> "NewsItemRecord":
        return cls(
            title=item.title,
            link=item.link,
            publish_date=item.publish_date,
            description=item.description,
        )

    def to_item(self) -> NewsItem:
        return NewsItem(self.title, self.link, self.publish_date, self.description)


class SnapshotRecord(BaseModel):
    """Stored form of a feed snapshot"""
    model_config = ConfigDict(extra="forbid")

    source_url: str
    title: str
    description: str = ""
    last_build_date: AwareDatetime | None = None
    items: list[NewsItemRecord] = []

    @classmethod
    def from_snapshot(cls, snapshot: FeedSnapshot) -> "SnapshotRecord":
        return cls(
            source_url=snapshot.source_url,
            title=snapshot.title,
            description=snapshot.description,
            last_build_date=snapshot.last_build_date,
            items=[NewsItemRecord.from_item(item) for item in snapshot.items],
        )

    def to_snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            source_url=self.source_url,
            title=self.title,
            description=self.description,
            items=tuple(record.to_item() for record in self.items),
            last_build_date=self.last_build_date,
        )


class CacheEntryRecord(BaseModel):
    """Stored form of a cache entry; the key is the mapping key in the file"""
    model_config = ConfigDict(extra="forbid")

    last_refreshed_at: AwareDatetime
    snapshot: SnapshotRecord


class CacheFile(BaseModel):
    """Top level of the durable cache file"""
    schema_version: Literal[1] = CACHE_SCHEMA_VERSION
    saved_at: AwareDatetime
    entries: dict[str, CacheEntryRecord] = {}

    @classmethod
    def from_entries(cls, entries: dict[str, CacheEntry], saved_at: datetime) -> "CacheFile":
        return cls(
            saved_at=saved_at,
            entries={
                key: CacheEntryRecord(
                    last_refreshed_at=entry.last_refreshed_at,
                    snapshot=SnapshotRecord.from_snapshot(entry.snapshot),
                )
                for key, entry in entries.items()
            },
        )

    def to_entries(self) -> dict[str, CacheEntry]:
        return {
            key: CacheEntry(
                key=key,
                snapshot=record.snapshot.to_snapshot(),
                last_refreshed_at=record.last_refreshed_at,
            )
            for key, record in self.entries.items()
        }


# =============================================================================
# Response Models
# =============================================================================


class CacheStats(BaseModel):
    """Feed cache counters"""
    entries: int = Field(..., ge=0)
    dirty: bool
    hits: int = Field(0, ge=0)
    refreshes: int = Field(0, ge=0)
    flushes: int = Field(0, ge=0)
    flush_failures: int = Field(0, ge=0)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    cache: CacheStats
    version: str


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    message: str | None = None
