"""Repository access, change classification and event routing."""
