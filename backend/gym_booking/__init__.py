"""Gym class booking and waitlist admission backend."""
