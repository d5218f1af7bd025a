"""Free-text intent handling: classification, matching, extraction and risk."""
