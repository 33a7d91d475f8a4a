"""Shared constants, errors, configuration and logging for mc_ctrl."""
