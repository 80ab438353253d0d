"""
Streaming at Scale benchmark orchestrator.

Deploys and verifies an Event Hubs Kafka -> Flink -> Event Hubs Kafka
benchmark on Azure, one stage at a time.

Package structure:
- frontend: Command line interface and argument resolution
- settings: Defaults and environment overrides
- core/: Stage selection, preflight checks, stage execution
- models/: Deployment configuration, throughput tiers, resource names
- builders/: Collaborator script catalog and command building
- infra/: Local command execution and the run log
"""

__version__ = "1.0.0"
