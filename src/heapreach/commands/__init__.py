"""Command handlers for the heapreach CLI."""
