"""
Docker Cleaner - stop long-running containers and remove old or untagged Docker images.
"""

__version__ = "1.0.0"
__author__ = "Docker Cleaner"
__description__ = "Age and tag based cleanup of Docker containers and images"
