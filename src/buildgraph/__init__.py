"""Build graph records, orchestration and Ninja emission."""
