"""Flowplan - per-assignee task scheduling engine."""

__version__ = "0.1.0"
