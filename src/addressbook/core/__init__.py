"""Cancellation, progress, result aggregation and observability primitives."""
