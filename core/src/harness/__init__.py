"""Parallel build-and-simulate runner for firmware example projects."""
