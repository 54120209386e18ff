"""EduNotes: subject-organized notes and videos behind admin-approved access."""

__version__ = "0.1.0"
