"""Small pure helpers used across the tracker."""
