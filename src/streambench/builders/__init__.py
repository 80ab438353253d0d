"""
Command builders for the orchestrator.

Contains:
- collaborators: Stage script catalog and shell command generation
"""

from .collaborators import (
    Collaborator,
    build_common_collaborators,
    build_ingestion_collaborators,
    build_metrics_collaborators,
    build_processing_collaborators,
    build_test_collaborators,
    build_verify_collaborators,
    build_workspace_name_collaborators,
    parse_exports,
)
