"""Tests for the status route."""

import time
from unittest.mock import MagicMock

from contribution_review.routes.status import health


class TestHealthRoute:
    """Test the Health Route."""

    async def test_reports_ok(self) -> None:
        """Verify liveness payload."""
        request = MagicMock()
        request.app.state.settings.app.env = "test"
        request.app.state.start_time = time.monotonic() - 5

        result = await health(request)

        assert result["status"] == "ok"
        assert result["environment"] == "test"
        assert result["uptime_seconds"] >= 5
