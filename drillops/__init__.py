"""DrillOps drilling-fleet operations backend."""
