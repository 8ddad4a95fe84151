"""HTTP surface and request dispatch."""
