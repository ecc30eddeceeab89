from .study_archive import StudyArchive

__all__ = ["StudyArchive"]
