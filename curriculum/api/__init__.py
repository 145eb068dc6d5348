# API module - course-content store interface and REST client
from .ports import CourseContentStore
from .client import CourseApiClient

__all__ = [
    'CourseContentStore',
    'CourseApiClient',
]
