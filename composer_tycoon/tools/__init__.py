"""Command line helpers for Composer Tycoon."""
