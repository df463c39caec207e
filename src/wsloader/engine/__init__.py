"""Load-generation engine: connection workers, spawn scheduler and run orchestration."""
