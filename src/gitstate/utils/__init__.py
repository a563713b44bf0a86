"""Small async helpers shared across gitstate."""
