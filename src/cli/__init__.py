"""
CLI (Command Line Interface) for the Site Comparator.

This is a thin wrapper around the core engine. All business logic lives
in the sitediff package so other front ends can reuse it.
"""
