import logging

import pytest

from common.logging_config import AuditLogger, FrameMetadata, get_logger


def test_get_logger_adds_one_handler():
    first = get_logger("globe.test.handlers")
    second = get_logger("globe.test.handlers", level=logging.DEBUG)
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG


def test_audit_logger_is_singleton():
    assert AuditLogger() is AuditLogger()


def test_frame_summary_counts_events():
    audit = AuditLogger()
    with audit.frame_context("audit_counts", config={"tolerance": 1e-3}) as frame:
        assert isinstance(frame, FrameMetadata)
        audit.log_degeneration("occluded")
        audit.log_degeneration("occluded")
        audit.log_degeneration("too_few_points", context={"points": 1})
        audit.log_numeric_guard("depth_cap", count=4)
        audit.log_ring_processed()

    summary = audit.get_frame_summary("audit_counts")
    audit.discard_frame("audit_counts")

    assert summary["rings_processed"] == 1
    assert summary["total_degenerate_rings"] == 3
    assert summary["degenerate_rings_by_reason"] == {"occluded": 2, "too_few_points": 1}
    assert summary["numeric_guards"] == {"depth_cap": 4}
    assert summary["end_time"] is not None


def test_events_outside_a_frame_are_not_counted():
    audit = AuditLogger()
    audit.log_degeneration("occluded")
    with audit.frame_context("audit_quiet"):
        pass
    audit.log_numeric_guard("renormalized")
    summary = audit.get_frame_summary("audit_quiet")
    audit.discard_frame("audit_quiet")
    assert summary["total_degenerate_rings"] == 0
    assert summary["numeric_guards"] == {}


def test_config_hash_is_deterministic():
    a = FrameMetadata(frame_id="a", start_time=None)
    b = FrameMetadata(frame_id="b", start_time=None)
    assert a.compute_config_hash({"x": 1, "y": 2}) == b.compute_config_hash({"y": 2, "x": 1})
    assert len(a.config_hash) == 16
    assert a.compute_config_hash({"x": 2}) != b.config_hash


def test_discarded_frame_is_unknown():
    audit = AuditLogger()
    with audit.frame_context("audit_discard"):
        pass
    audit.discard_frame("audit_discard")
    with pytest.raises(KeyError):
        audit.get_frame_summary("audit_discard")
