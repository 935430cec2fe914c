"""Places acquisition: paginated fetcher, tile sink and the resumable loop."""
