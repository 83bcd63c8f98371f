"""Domain model, contracts and orchestration."""
