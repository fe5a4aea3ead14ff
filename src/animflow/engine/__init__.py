"""Flow execution: run context, metadata propagation, node executors and the orchestrator."""
