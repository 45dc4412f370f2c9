"""Behavior tests for the headless demo entry point."""

from unittest.mock import Mock, patch

from storyroute.animation.surface import RecordingSurface
from storyroute.main import JOURNEY, main


class TestMain:
    """Test the demo journey end to end."""

    @patch("storyroute.main.RecordingSurface")
    def test_plays_journey_with_one_marker(self, mock_surface_class):
        """Should play both legs as one chain without creating a second marker."""
        surface = RecordingSurface()
        mock_surface_class.return_value = surface

        main(["--duration-ms", "200"])

        assert surface.markers_created == 1
        assert surface.layers == {}

    @patch("storyroute.main.OsrmRouter")
    def test_road_mode_uses_osrm(self, mock_router_class):
        """Should ask the OSRM router for every leg in road mode."""
        router = Mock()
        router.resolve_route.side_effect = lambda coordinates, mode: [
            coordinates[0],
            ((coordinates[0][0] + coordinates[-1][0]) / 2, coordinates[0][1]),
            coordinates[-1],
        ]
        mock_router_class.return_value = router

        main(["--road", "--duration-ms", "100"])

        assert router.resolve_route.call_count == len(JOURNEY)
