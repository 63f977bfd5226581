"""Classification, normalization and batching of raw records."""
