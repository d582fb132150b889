"""Run context, errors, exit codes, logging and process helpers."""
