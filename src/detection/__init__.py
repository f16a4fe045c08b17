"""
Detection module: Ensemble CUSUM change detection.

Implements the lagged CUSUM scorer, the hyperparameter grid sweep, and the
vote-based ranking of flagged entities.
"""

from .cusum import CusumScorer, counts_of, score, validate_hyperparameters
from .engine import ChangeDetectionEngine
from .grid import GridEnsembleRunner, build_grid, run_grid, score_cell
from .schema import CusumState, DetectionReport, Hit, RankedEntity
from .votes import VoteAggregator, elbow_cutoff, rank, select_top

__all__ = [
	"ChangeDetectionEngine",
	"CusumScorer",
	"CusumState",
	"DetectionReport",
	"GridEnsembleRunner",
	"Hit",
	"RankedEntity",
	"VoteAggregator",
	"build_grid",
	"counts_of",
	"elbow_cutoff",
	"rank",
	"run_grid",
	"score",
	"score_cell",
	"select_top",
	"validate_hyperparameters",
]
