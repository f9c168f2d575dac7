"""Vote submission, pattern learning triggers and result tallies."""

from .service import VoteService
from .tally import CellTally, best_cells, tally_votes

__all__ = ["CellTally", "VoteService", "best_cells", "tally_votes"]
