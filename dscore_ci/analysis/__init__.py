"""Result caching, summaries and output helpers."""
