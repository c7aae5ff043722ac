"""Sample sources read by the comment extraction tests."""
