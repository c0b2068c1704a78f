"""Tests for group-planner."""
