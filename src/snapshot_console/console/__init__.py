"""Console composition root and its state machine."""
