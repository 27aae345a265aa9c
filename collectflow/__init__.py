"""Collections escalation workflow engine."""
