"""HTTP surface of the tracker service."""
