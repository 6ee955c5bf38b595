"""Core BQL functionality: language, IR, errors, settings, host adapter."""
