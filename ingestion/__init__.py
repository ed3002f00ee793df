"""
Scraping pipeline components for river data ingestion.

Modules:
    base: Abstract base class for source adapters (HTTP + HTML helpers)
    timestamps: Locating and parsing each source's localized timestamp
    runner: Refresh orchestrator (fetch all sources, merge, persist)
    scheduler: APScheduler integration for periodic refreshes
    cache: Read-through cache for the last aggregate fetch

Subpackages:
    extractors: One adapter per source
        - bulletin_extractor: primary bulletin table (mandatory)
        - station_series_extractor: single-station time series
        - regional_bulletin_extractor: regional bulletin found via its listing page
    transformers: Cell-level normalization (placeholders, tendency)
    loaders: SQLite repository with idempotent upserts

Architecture:
    RefreshRunner calls every adapter, tolerates failures of the
    best-effort sources, and hands the merged batch to the repository in
    a single transaction.

Usage:
    from ingestion.loaders.sqlite_loader import SQLiteRiverRepository
    from ingestion.runner import build_default_runner

Example:
    repository = await SQLiteRiverRepository.open("data/riverdata.db")
    runner = build_default_runner(repository)
    result = await runner.refresh()

    print(f"Saved {result['records_saved']} records")
"""

__all__ = [
    "SourceAdapter",
    "RefreshRunner",
    "RefreshScheduler",
    "RiverDataCache",
    "HidmetBulletinExtractor",
    "StationSeriesExtractor",
    "RegionalBulletinExtractor",
    "SQLiteRiverRepository",
]
