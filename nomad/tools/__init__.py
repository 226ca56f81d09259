"""Ports the planner talks to."""
