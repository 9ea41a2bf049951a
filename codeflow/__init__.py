"""
Code Flow - Pipe-rotation puzzles planned into timed sprints.

The package provides:
- A pure puzzle engine (generation, rotation, solution checking)
- Ticket generation wrapping puzzles with project-management metadata
- A session state machine driving sprints, timers and save/resume
- An HTTP adapter and CLI for presentation layers
"""

__version__ = "0.1.0"
