"""
BugSnap - annotate captured screenshots and video frames, render shareable reports.

This package contains the main application modules:
- editor: Geometry model, interaction controller and the editor canvas
- core: Composite renderer, summaries and PDF export
- ui: Main window and slide navigation
- services: Application services (config, logging)
"""

__version__ = "0.1.0"
