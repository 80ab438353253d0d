#!/usr/bin/env python3
"""
Shared configuration for the orchestrator.

This module centralizes default values so the frontend, the executor and
the tests agree on them. Paths can be overridden via environment variables.
"""

import os
from pathlib import Path

# =============================================================================
# Paths (can be overridden via environment variables)
# =============================================================================

# Directory holding the collaborator scripts (components/, simulator/, streaming/)
COMPONENTS_ROOT = Path(os.environ.get("STREAMBENCH_COMPONENTS_ROOT", ".."))

# The run log, truncated at the start of every run
LOG_FILE = Path(os.environ.get("STREAMBENCH_LOG_FILE", "log.txt"))


# =============================================================================
# Run defaults
# =============================================================================

DEFAULT_LOCATION = "eastus"
DEFAULT_TEST_TYPE = "1"
DEFAULT_STEPS = "CIPTM"
DEFAULT_PLATFORM = "aks"
DEFAULT_JOB_TYPE = "simple-relay"

AKS_KUBERNETES_VERSION = "1.14.7"
HDINSIGHT_PASSWORD = "Strong_Passw0rd!"

# Tools the collaborator scripts call
REQUIRED_TOOLS = ["az", "jq", "helm", "kubectl", "mvn"]
