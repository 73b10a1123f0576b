"""Data models shared by every stage of the pipeline."""

from erchain.models.collections import BlockedRecords, CandidatePairs, GenerationOutput
from erchain.models.records import Block, Record, RecordPair, pair_id

__all__ = [
    "Record",
    "RecordPair",
    "Block",
    "pair_id",
    "BlockedRecords",
    "CandidatePairs",
    "GenerationOutput",
]
