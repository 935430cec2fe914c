"""Sampling grid generation and study area clipping."""
