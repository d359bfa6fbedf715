"""Tests for HabitPulse."""
