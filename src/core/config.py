"""
Application configuration for the CUSUM change-detection engine.

Provides environment-aware settings with conservative defaults. The slack and
threshold grids are configurable to avoid hard-coded "magic numbers".
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GridAxis(BaseModel):
	"""
	Ascending arithmetic sequence of hyperparameter values.

	Notes:
	- start/stop are inclusive; stop is kept when it falls on the grid.
	- Values must be non-negative, so start >= 0 bounds the whole axis.
	"""

	start: float = Field(0.0, ge=0.0, description="First value on the axis")
	stop: float = Field(..., ge=0.0, description="Last admissible value (inclusive)")
	step: float = Field(1.0, gt=0.0, description="Spacing between consecutive values")

	@model_validator(mode="after")
	def _check_bounds(self) -> "GridAxis":
		if self.start > self.stop:
			raise ValueError(f"Grid start {self.start} is greater than stop {self.stop}")
		return self

	def values(self) -> List[float]:
		# Tolerance keeps stop on the grid despite float steps like 0.1.
		count = int(np.floor((self.stop - self.start) / self.step + 1e-9)) + 1
		return [float(v) for v in self.start + self.step * np.arange(count)]


class DetectionConfig(BaseModel):
	"""
	Ensemble CUSUM configuration.

	Rationale:
	- c_grid (slack) absorbs month-to-month noise; larger values suppress alarms.
	- t_grid starts above zero because a zero threshold keeps every entity in alarm.
	- top_k is the reporting cutoff chosen by the analyst, not computed.
	"""

	c_grid: GridAxis = GridAxis(start=0.0, stop=5.0, step=0.5)
	t_grid: GridAxis = GridAxis(start=1.0, stop=20.0, step=1.0)
	top_k: int = Field(10, ge=0, description="Number of top-ranked entities to report")
	max_workers: int = Field(1, ge=1, description="Worker threads for the grid sweep")
	min_periods: int = Field(
		2, ge=2, description="History required before an entity can produce a hit"
	)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="CUSUM_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	detection: DetectionConfig = DetectionConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
