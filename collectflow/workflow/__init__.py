"""Pure escalation engine: stage resolution, priority, instance building and metrics."""
