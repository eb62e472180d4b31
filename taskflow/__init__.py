"""Taskflow: hierarchical task tracking with workflow graph automation."""
