"""
Tests for progress reporting module.
"""

import io
import sys
from unittest.mock import MagicMock, patch

import pytest

from firepm.progress import AnalysisCancelled, PrintReporter, ProgressReporter, TqdmReporter


class TestAnalysisCancelled:
    """Test AnalysisCancelled exception."""

    def test_is_exception(self):
        assert issubclass(AnalysisCancelled, Exception)

    def test_message(self):
        exc = AnalysisCancelled("cancelled by user")
        assert str(exc) == "cancelled by user"


class TestProgressReporter:
    """Test ProgressReporter throttled callback wrapper."""

    def test_start_fires_zero(self):
        cb = MagicMock()
        pr = ProgressReporter(100, cb)
        pr.start()
        cb.assert_called_with(0, 100)

    def test_advance_throttled(self):
        cb = MagicMock()
        pr = ProgressReporter(100, cb, update_every=10)
        pr.start()
        cb.reset_mock()

        pr.advance(5)
        assert cb.call_count == 0

        pr.advance(5)
        cb.assert_called_with(10, 100)

    def test_advance_fires_at_completion(self):
        cb = MagicMock()
        pr = ProgressReporter(10, cb, update_every=100)
        pr.start()
        cb.reset_mock()

        for _ in range(10):
            pr.advance(1)

        cb.assert_called_once_with(10, 10)
        assert pr.current == 10

    def test_finish_fires_final_update(self):
        cb = MagicMock()
        pr = ProgressReporter(100, cb)
        pr.start()
        pr.advance(50)
        cb.reset_mock()

        pr.finish()
        cb.assert_called_with(100, 100)

    def test_finish_no_double_fire(self):
        cb = MagicMock()
        pr = ProgressReporter(10, cb, update_every=1)
        pr.start()
        for _ in range(10):
            pr.advance(1)
        cb.reset_mock()

        pr.finish()
        assert cb.call_count == 0

    def test_default_update_every(self):
        assert ProgressReporter(1000, MagicMock()).update_every == 10
        assert ProgressReporter(17, MagicMock()).update_every == 1

    def test_cancel_check(self):
        cb = MagicMock()
        cancelled = {"flag": False}
        pr = ProgressReporter(10, cb, cancel_check=lambda: cancelled["flag"])
        pr.start()
        pr.advance()
        cancelled["flag"] = True
        with pytest.raises(AnalysisCancelled, match="1 of 10"):
            pr.advance()
        assert pr.current == 1


class TestPrintReporter:
    """Test PrintReporter console output."""

    def test_output_format(self):
        reporter = PrintReporter()
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            reporter(9, 20)

        output = buf.getvalue()
        assert "45.0%" in output
        assert "9/20 runs" in output

    def test_total_zero_early_return(self):
        reporter = PrintReporter()
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            reporter(0, 0)

        assert buf.getvalue() == ""

    def test_completion_newline(self):
        reporter = PrintReporter()
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            reporter(20, 20)

        assert buf.getvalue().endswith("\n")


class TestTqdmReporter:
    """Test TqdmReporter with mock tqdm."""

    def test_tqdm_missing_raises(self):
        reporter = TqdmReporter()
        with patch.dict("sys.modules", {"tqdm": None}):
            with pytest.raises(ImportError, match="tqdm"):
                reporter(0, 100)

    def test_tqdm_basic_flow(self):
        mock_bar = MagicMock()
        mock_bar.n = 0
        mock_tqdm_cls = MagicMock(return_value=mock_bar)
        mock_tqdm_module = MagicMock()
        mock_tqdm_module.tqdm = mock_tqdm_cls

        reporter = TqdmReporter(desc="runs")

        with patch.dict("sys.modules", {"tqdm": mock_tqdm_module}):
            reporter(0, 100)
            mock_tqdm_cls.assert_called_once_with(total=100, unit="run", desc="runs")

            reporter(50, 100)
            mock_bar.update.assert_called_with(50)

            mock_bar.n = 50
            reporter(100, 100)
            mock_bar.update.assert_called_with(50)
            mock_bar.close.assert_called_once()

        assert reporter._bar is None
