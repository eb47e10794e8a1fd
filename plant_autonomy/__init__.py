"""
Plant Autonomy.

An autonomous monitoring and response engine for manufacturing plants. It
polls an equipment hierarchy, detects threshold anomalies, and drives a
staged, time-delayed response cascade (agent activation, work-order
creation, emergency line stop) while publishing every step as an event.

This package provides:
- Data models for equipment, events and work orders
- Abstract interfaces for the hierarchy provider, work-order client and clock
- The detection engine (evaluator, cooldowns, cascades, event bus, scheduler)
- In-memory reference collaborators and a runnable monitoring service
"""

__version__ = "0.1.0"
