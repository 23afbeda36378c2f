"""
Checkpoint Model
Pydantic model for a restorable repository state taken before a strategy run.
"""
from pydantic import BaseModel
from datetime import datetime


class Checkpoint(BaseModel):
    label: str
    timestamp: datetime
    committed: bool = False   # False when the tree had nothing to commit
    sha: str = ""             # HEAD after the checkpoint step (rollback target)
