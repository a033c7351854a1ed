"""Platform, CI context, and GitHub API utilities."""
