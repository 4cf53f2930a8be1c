"""
Feature modules for RidePower.

Each feature is a self-contained module with:
- models.py - Dataclasses for the feature's data
- service.py / physics.py / processor.py - Business logic
- exceptions.py - Feature errors (optional)
"""
