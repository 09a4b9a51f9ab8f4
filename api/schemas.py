import logging
import math
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from squatcount.calibration.controller import CalibrationStage
from squatcount.output import PhaseIndicator

logger = logging.getLogger(__name__)


class PositionModel(BaseModel):
    x: float
    y: float

    @field_validator("x", "y")
    @classmethod
    def coordinate_is_finite(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError("coordinates must be finite numbers")
        return v


class KeypointModel(BaseModel):
    part: str = Field(..., min_length=1, description="Joint name, e.g. 'nose'.")
    position: PositionModel
    score: float = Field(..., ge=0.0, le=1.0, description="Keypoint confidence in [0, 1].")


class PoseModel(BaseModel):
    score: float = Field(1.0, ge=0.0, le=1.0, description="Overall pose confidence in [0, 1].")
    keypoints: List[KeypointModel] = Field(default_factory=list)


class FrameRequest(BaseModel):
    """
    Poses reported by the estimator for one frame, in PoseNet JSON shape.
    """
    poses: List[PoseModel] = Field(default_factory=list, description="Zero or more detected poses.")
    timestamp: Optional[float] = Field(
        None,
        description="Monotonic frame time in seconds; the server clock is used when omitted.",
    )

    @field_validator("poses", mode="before")
    @classmethod
    def drop_malformed_poses(cls, v: Any) -> Any:
        # A bad pose means "no detection" for that pose, not a rejected frame.
        if not isinstance(v, list):
            return v
        kept = []
        for raw in v:
            try:
                kept.append(PoseModel.model_validate(raw))
            except ValidationError as exc:
                logger.debug("Skipping malformed pose: %s", exc.errors()[0].get("msg"))
        return kept

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_finite(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and (math.isnan(v) or math.isinf(v)):
            raise ValueError("timestamp must be a finite number")
        return v


class SessionCreateRequest(BaseModel):
    countdown_seconds: Optional[int] = Field(None, ge=1, description="Seconds per calibration countdown.")
    minimum_part_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    tolerance: Optional[float] = Field(None, gt=0.0, lt=1.0, description="Relative proximity band half-width.")


class TickRequest(BaseModel):
    ticks: int = Field(1, ge=1, le=3600, description="Number of one-second ticks to apply.")


class FrameReportResponse(BaseModel):
    session_id: str
    frame_index: int
    counter: int
    slider: float
    indicator: PhaseIndicator
    message: str
    instruction_image: Optional[str] = None
    stage: CalibrationStage
    phases: List[str]
    phase: Optional[str] = None
    detected: bool
