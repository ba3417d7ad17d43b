"""Batch pipeline stages: discovery, resolution, jobs, pool and aggregation."""
