"""Text normalization helpers shared by matching and enrichment."""
