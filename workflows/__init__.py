"""
Workflows for investor sourcing and outreach tracking

This package contains high-level orchestration:
- investor_sourcing.py: dataset -> enrichment -> strategy matching
- pipeline_tracker.py: funnel snapshot, status updates, webhooks, rates
- config.py: environment-driven configuration

Usage:
    from workflows.investor_sourcing import InvestorSourcing
    sourcing = InvestorSourcing.from_config(EngineConfig.from_env())
    result = sourcing.source({"sectors": ["Fintech"]})

    from workflows.pipeline_tracker import PipelineTracker
    tracker = PipelineTracker(await open_pipeline_store(config))
    rates = await tracker.get_stats("founder-1")
"""

# Lazy imports to keep "import workflows" free of storage side effects
__all__ = [
    "EngineConfig",
    "InvestorSourcing",
    "SourcingResult",
    "PipelineTracker",
    "PipelineSnapshot",
    "compute_stats",
    "compute_rates",
    "stats_to_wire",
]


def __getattr__(name):
    """Lazy import of public workflow names."""
    if name == "EngineConfig":
        from workflows.config import EngineConfig
        return EngineConfig
    elif name in ("InvestorSourcing", "SourcingResult"):
        from workflows import investor_sourcing
        return getattr(investor_sourcing, name)
    elif name in ("PipelineTracker", "PipelineSnapshot", "compute_stats", "compute_rates", "stats_to_wire"):
        from workflows import pipeline_tracker
        return getattr(pipeline_tracker, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
