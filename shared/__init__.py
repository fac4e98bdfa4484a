"""Shared utilities for the deployment tooling (settings base, structured logging)."""
