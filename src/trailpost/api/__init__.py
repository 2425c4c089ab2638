"""HTTP surface for the Trailpost core."""
