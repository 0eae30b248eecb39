"""
Logging Configuration and Frame Audit Trail.

This module provides structured logging for the projection pipeline and an
audit trail of the places where the pipeline quietly degraded its input:
rings dropped as degenerate or occluded, vectors renormalized back onto the
unit sphere, subdivisions stopped at the depth cap, slerp fallbacks.

None of these events is an error. A map with one malformed feature must
still render, so the pipeline degrades silently and records what it did here
instead of raising.

Audit Contents
--------------
Per frame:
- Configuration hash
- Numeric guard counts by kind
- Degenerate ring counts by reason
"""

import hashlib
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from contextlib import contextmanager
import threading


# Configure root logger for the package
def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the globe vector pipeline.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


@dataclass
class FrameMetadata:
    """Audit record for one rendered frame.

    Attributes
    ----------
    frame_id : str
        Caller-chosen frame identifier.
    start_time : datetime
        When the frame started.
    end_time : datetime, optional
        When the frame finished.
    config_hash : str
        Short hash of the pipeline configuration used.
    numeric_guards : dict
        Count of numeric guard activations by kind
        (e.g. 'renormalized', 'depth_cap', 'slerp_antipodal').
    degenerate_rings : dict
        Count of rings dropped by reason
        (e.g. 'occluded', 'too_few_points', 'empty_after_clip').
    rings_processed : int
        Rings that reached the output buffers.
    """
    frame_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    config_hash: str = ""
    numeric_guards: Dict[str, int] = field(default_factory=dict)
    degenerate_rings: Dict[str, int] = field(default_factory=dict)
    rings_processed: int = 0

    def compute_config_hash(self, config: Dict[str, Any]) -> str:
        """Compute a deterministic hash of the configuration.

        Parameters
        ----------
        config : dict
            The configuration dictionary.

        Returns
        -------
        str
            Truncated SHA-256 hash of the configuration.
        """
        config_str = json.dumps(config, sort_keys=True, default=str)
        self.config_hash = hashlib.sha256(config_str.encode()).hexdigest()[:16]
        return self.config_hash


class AuditLogger:
    """Central facility for the per-frame audit trail.

    Events logged outside a frame context are written to the log but not
    counted against any frame.

    Thread Safety
    -------------
    Counter updates are serialized, so rings processed on worker threads may
    log into the frame opened by the calling thread.

    Examples
    --------
    >>> audit = AuditLogger()
    >>> with audit.frame_context("frame_0001") as frame:
    ...     audit.log_degeneration("occluded", context={"ring": 3})
    >>> summary = audit.get_frame_summary("frame_0001")
    """

    _instance: Optional['AuditLogger'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'AuditLogger':
        """Singleton pattern for global audit logger."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the audit logger."""
        if self._initialized:
            return

        self._frames: Dict[str, FrameMetadata] = {}
        self._current_frame_id: Optional[str] = None
        self._records_lock = threading.Lock()
        self._logger = get_logger("audit")
        self._initialized = True

    @contextmanager
    def frame_context(self, frame_id: str, config: Optional[Dict[str, Any]] = None):
        """Context manager for one frame.

        Parameters
        ----------
        frame_id : str
            Identifier for this frame.
        config : dict, optional
            Configuration to compute hash from.

        Yields
        ------
        FrameMetadata
            The metadata object for this frame.
        """
        metadata = FrameMetadata(
            frame_id=frame_id,
            start_time=datetime.now()
        )

        if config:
            metadata.compute_config_hash(config)

        self._frames[frame_id] = metadata
        self._current_frame_id = frame_id

        self._logger.debug(f"Starting frame {frame_id} with config hash {metadata.config_hash}")

        try:
            yield metadata
        finally:
            metadata.end_time = datetime.now()
            self._current_frame_id = None
            self._logger.debug(
                f"Completed frame {frame_id}. "
                f"Rings: {metadata.rings_processed}, "
                f"dropped: {sum(metadata.degenerate_rings.values())}, "
                f"guards: {sum(metadata.numeric_guards.values())}"
            )

    def _current(self) -> Optional[FrameMetadata]:
        if self._current_frame_id is None:
            return None
        return self._frames.get(self._current_frame_id)

    def log_numeric_guard(
        self,
        kind: str,
        count: int = 1,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record that a numeric guard replaced an ill-conditioned result.

        Parameters
        ----------
        kind : str
            Guard identifier ('renormalized', 'depth_cap', ...).
        count : int
            Number of activations being reported at once.
        context : dict, optional
            Additional context for the log line.
        """
        frame = self._current()
        if frame is not None:
            with self._records_lock:
                frame.numeric_guards[kind] = frame.numeric_guards.get(kind, 0) + count

        self._logger.debug(f"NUMERIC GUARD | {kind} | count={count} | {context or {}}")

    def log_degeneration(
        self,
        reason: str,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record that a ring collapsed to an empty polyline.

        Parameters
        ----------
        reason : str
            Why the ring was dropped ('occluded', 'too_few_points', ...).
        context : dict, optional
            Additional context for the log line.
        """
        frame = self._current()
        if frame is not None:
            with self._records_lock:
                frame.degenerate_rings[reason] = frame.degenerate_rings.get(reason, 0) + 1

        self._logger.debug(f"DEGENERATE RING | {reason} | {context or {}}")

    def log_ring_processed(self) -> None:
        """Count one ring that produced output."""
        frame = self._current()
        if frame is not None:
            with self._records_lock:
                frame.rings_processed += 1

    def get_frame_summary(self, frame_id: str) -> Dict[str, Any]:
        """Get a summary of a frame.

        Parameters
        ----------
        frame_id : str
            The frame identifier.

        Returns
        -------
        dict
            Summary including guard and degeneration counts.
        """
        if frame_id not in self._frames:
            raise KeyError(f"No frame found with ID {frame_id}")

        metadata = self._frames[frame_id]

        return {
            "frame_id": frame_id,
            "config_hash": metadata.config_hash,
            "start_time": metadata.start_time.isoformat(),
            "end_time": metadata.end_time.isoformat() if metadata.end_time else None,
            "rings_processed": metadata.rings_processed,
            "total_degenerate_rings": sum(metadata.degenerate_rings.values()),
            "degenerate_rings_by_reason": dict(metadata.degenerate_rings),
            "numeric_guards": dict(metadata.numeric_guards),
        }

    def discard_frame(self, frame_id: str) -> None:
        """Forget a frame's audit record (frames are transient)."""
        self._frames.pop(frame_id, None)
