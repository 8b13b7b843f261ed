"""Action plan board application for the care-home backend.

This package contains the models for the five audit category partitions,
the aggregation and dispatch services behind the "My Action Plans" board,
and the API and WebSocket routes exposing them.
"""
