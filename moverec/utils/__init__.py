"""Shared utilities for moverec."""
