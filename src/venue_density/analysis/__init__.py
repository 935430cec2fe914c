"""Cleaning and per-district density aggregation of the acquired places."""
