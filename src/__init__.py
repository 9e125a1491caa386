"""Mill Production Tracker."""
