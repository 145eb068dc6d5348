# Curriculum - prerequisite ordering and unit/material provisioning
"""
Curriculum orders chapters and units by their prerequisite chains and
provisions a new unit together with its learning materials (PDF/MP3 files
whose names encode the material identifier) against the course-content API.
"""

__version__ = "0.1.0"
