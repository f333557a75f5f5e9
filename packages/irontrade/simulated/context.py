"""Bundle of the external collaborators a simulated environment consumes."""

from __future__ import annotations

from dataclasses import dataclass

from .data import BarDataSource
from .time import Clock


@dataclass(frozen=True)
class SimulatedContext:
    bar_data_source: BarDataSource
    clock: Clock
