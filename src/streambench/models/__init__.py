"""
Data models for the orchestrator.

Contains:
- config: DeploymentConfig and its enumerations
- tier: Throughput tiers and sizing profiles
- names: Deterministic resource names
"""

from .config import DeploymentConfig, JobType, Platform, ServicePrincipal
from .tier import TIER_TABLE, ThroughputTier, TierProfile, lookup_tier, parse_tier
from .names import ResourceNameSet, derive_names
