"""Developer utilities (opt-in timing instrumentation)."""
