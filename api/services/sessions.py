"""
In-memory registry of exercise sessions served over HTTP.

Sessions live only as long as the process; nothing is persisted. Each
session has its own lock so frames for one session are processed strictly
one at a time.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional

from fastapi import HTTPException

from api.schemas import FrameReportResponse, FrameRequest, SessionCreateRequest
from squatcount.config import CounterConfig
from squatcount.session import ExerciseSession, FrameReport
from squatcount.vision.keypoints import Keypoint, Pose, Position

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    session: ExerciseSession
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    last_seen: float = 0.0


DEFAULT_IDLE_SECONDS = float(os.getenv("SQUATCOUNT_SESSION_IDLE_SECONDS", "900"))


class SessionRegistry:
    """
    Sessions untouched for ``idle_seconds`` are dropped the next time a session is created.
    """

    def __init__(
        self,
        base_config: Optional[CounterConfig] = None,
        *,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_config = base_config or CounterConfig.from_env()
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._entries: Dict[str, SessionEntry] = {}

    def create(self, payload: SessionCreateRequest) -> str:
        self.evict_idle()
        overrides = payload.model_dump(exclude_none=True)
        config = replace(self.base_config, **overrides) if overrides else self.base_config
        session_id = uuid.uuid4().hex
        self._entries[session_id] = SessionEntry(ExerciseSession(config), last_seen=self._clock())
        logger.info("Created session %s", session_id)
        return session_id

    def get(self, session_id: str) -> SessionEntry:
        entry = self._entries.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
        entry.last_seen = self._clock()
        return entry

    def delete(self, session_id: str) -> None:
        if self._entries.pop(session_id, None) is None:
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
        logger.info("Closed session %s", session_id)

    def evict_idle(self) -> int:
        cutoff = self._clock() - self.idle_seconds
        stale = [sid for sid, entry in self._entries.items() if entry.last_seen < cutoff and not entry.lock.locked()]
        for session_id in stale:
            del self._entries[session_id]
            logger.info("Evicted idle session %s", session_id)
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


def _to_poses(payload: FrameRequest) -> list[Pose]:
    return [
        Pose(
            keypoints=tuple(
                Keypoint(name=kp.part, position=Position(x=kp.position.x, y=kp.position.y), score=kp.score)
                for kp in pose.keypoints
            ),
            score=pose.score,
        )
        for pose in payload.poses
    ]


def to_response(session_id: str, report: FrameReport) -> FrameReportResponse:
    return FrameReportResponse(
        session_id=session_id,
        frame_index=report.frame_index,
        counter=report.counter,
        slider=report.slider,
        indicator=report.indicator,
        message=report.message,
        instruction_image=report.instruction_image,
        stage=report.stage,
        phases=list(report.phases),
        phase=report.phase,
        detected=report.detected,
    )


async def submit_frame(registry: SessionRegistry, session_id: str, payload: FrameRequest) -> FrameReportResponse:
    """
    Run one frame through the session, using the server clock when the client sends no timestamp.
    """
    entry = registry.get(session_id)
    timestamp = payload.timestamp if payload.timestamp is not None else time.monotonic()
    async with entry.lock:
        report = entry.session.process_frame(_to_poses(payload), timestamp=timestamp)
    return to_response(session_id, report)


async def apply_ticks(registry: SessionRegistry, session_id: str, ticks: int) -> FrameReportResponse:
    entry = registry.get(session_id)
    async with entry.lock:
        entry.session.tick(ticks)
        report = entry.session.report()
    return to_response(session_id, report)
