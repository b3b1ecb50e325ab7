"""Service layer package for application domain logic.

This package contains higher-level services that orchestrate DB access,
such as batch ingestion and monitoring-config saves.
"""
