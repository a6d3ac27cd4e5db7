"""agentthreads - agent tools that create and manage conversation threads."""

__version__ = "0.1.0"
