"""covreport: compare pull request coverage against the base branch."""

__version__ = "0.1.0"
