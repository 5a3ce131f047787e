from ccstats.local_stats.reader import LocalStatsError, LocalStatsReader, LocalUsage

__all__ = ["LocalStatsError", "LocalStatsReader", "LocalUsage"]
