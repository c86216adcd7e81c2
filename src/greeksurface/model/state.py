"""
Application State (Data Model)
==============================
This module defines the central data structure for the running application.

Why is this file needed?
------------------------
1. State Management: It holds the sampling parameters and the active
   metric/option selection in one place.
2. Decoupling: Views read from this object; the toolbar writes to it and
   asks it for a fresh dataset.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging

from greeksurface.model.dataset import MetricKind, SurfaceDataset
from greeksurface.model.pricing import OptionType
from greeksurface.model.sampling import SamplingParameters, generate_dataset

logger = logging.getLogger(__name__)


@dataclass
class SurfaceState:
    """
    Singleton-like holder of everything that determines the current surface.
    Pass this instance to the window and its widgets.
    """
    sampling: SamplingParameters = field(default_factory=SamplingParameters)
    metric: MetricKind = MetricKind.PRICE
    option_type: OptionType = OptionType.CALL

    @property
    def title(self) -> str:
        return f"{self.option_type.value.capitalize()} {self.metric.label}"

    def to_dataset(self) -> SurfaceDataset:
        return generate_dataset(self.sampling, self.metric, self.option_type)

    def reset(self) -> None:
        """Back to default parameters."""
        self.sampling = SamplingParameters()
        self.metric = MetricKind.PRICE
        self.option_type = OptionType.CALL
        logger.info("Surface state has been reset.")
