"""Journal entry orchestration."""

from soulmap.journal.finish import FinishResult, finish_entry

__all__ = ["FinishResult", "finish_entry"]
