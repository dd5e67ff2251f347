"""Projects app - construction projects and completion revenue recognition."""
